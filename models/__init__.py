# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    COIStatus,
    VendorAuthStatus,
    NotificationType,
    AuditAction,
)

# -------------------------
# Tables
# -------------------------
from .organization import Organization
from .user import User
from .building import Building, BuildingCreate, UserBuildingAccess
from .vendor import Vendor, VendorBuildingAuthorization
from .tenant import Tenant
from .guard import Guard, GuardBuildingAssignment
from .coi import COI, COICreate, COIReview, COIReviewFlags
from .notification_log import NotificationLog
from .audit_log import AuditLog, AuditEntry, AuditLogFilters, AuditLogPage

# -------------------------
# Compliance results
# -------------------------
from .compliance import (
    AccessDecision,
    VendorAccessRow,
    BuildingComplianceSummary,
    BuildingVendorRow,
    BuildingTenantRow,
    VendorComplianceSummary,
    TenantComplianceSummary,
    SweepResult,
)

__all__ = [
    # enums
    "Role",
    "COIStatus",
    "VendorAuthStatus",
    "NotificationType",
    "AuditAction",

    # tables
    "Organization",
    "User",
    "Building",
    "BuildingCreate",
    "UserBuildingAccess",
    "Vendor",
    "VendorBuildingAuthorization",
    "Tenant",
    "Guard",
    "GuardBuildingAssignment",
    "COI",
    "COICreate",
    "COIReview",
    "COIReviewFlags",
    "NotificationLog",
    "AuditLog",
    "AuditEntry",
    "AuditLogFilters",
    "AuditLogPage",

    # compliance
    "AccessDecision",
    "VendorAccessRow",
    "BuildingComplianceSummary",
    "BuildingVendorRow",
    "BuildingTenantRow",
    "VendorComplianceSummary",
    "TenantComplianceSummary",
    "SweepResult",
]
