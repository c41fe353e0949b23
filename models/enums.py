from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Closed set of platform roles. A user's role never changes after creation."""

    ACCOUNT_OWNER = "ACCOUNT_OWNER"
    PORTFOLIO_MANAGER = "PORTFOLIO_MANAGER"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    BUILDING_OWNER = "BUILDING_OWNER"
    TENANT = "TENANT"
    VENDOR = "VENDOR"
    GUARD = "GUARD"


# -----------------------------------------------------
# COI STATUS
# -----------------------------------------------------
class COIStatus(BaseStrEnum):
    """Review state of a certificate. EXPIRED is derived, never stored."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# -----------------------------------------------------
# VENDOR AUTHORIZATION STATUS
# -----------------------------------------------------
class VendorAuthStatus(BaseStrEnum):
    """Per-building approval gate for a vendor."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# -----------------------------------------------------
# NOTIFICATION CHANNEL
# -----------------------------------------------------
class NotificationType(BaseStrEnum):
    SMS = "SMS"
    EMAIL = "EMAIL"


# -----------------------------------------------------
# AUDIT ACTION
# -----------------------------------------------------
class AuditAction(BaseStrEnum):
    """State-changing decisions that leave an audit trail."""

    CREATE_BUILDING = "CREATE_BUILDING"
    DELETE_BUILDING = "DELETE_BUILDING"
    ASSIGN_BUILDING_ACCESS = "ASSIGN_BUILDING_ACCESS"
    REVOKE_BUILDING_ACCESS = "REVOKE_BUILDING_ACCESS"
    SET_BUILDING_OWNER = "SET_BUILDING_OWNER"
    APPROVE_VENDOR = "APPROVE_VENDOR"
    REJECT_VENDOR = "REJECT_VENDOR"
    ASSIGN_GUARD = "ASSIGN_GUARD"
    CREATE_COI = "CREATE_COI"
    REVIEW_COI = "REVIEW_COI"
