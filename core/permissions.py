# core/permissions.py

from models.enums import Role
from core.roles import as_role


# ============================================
# CENTRALIZED ROLE → CAPABILITIES MAP
#
# Pure function of role, no database access.
# Every role has an entry; anything not listed is denied.
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # ACCOUNT OWNER: everything inside their organization
    # =====================================================
    Role.ACCOUNT_OWNER: [
        "billing:read", "subscription:manage",

        "users:invite_portfolio_manager",
        "users:invite_property_manager",
        "users:invite_building_owner",
        "users:invite_tenant",
        "users:invite_vendor",
        "users:invite_guard",

        "buildings:read", "buildings:create", "buildings:write", "buildings:delete",
        "buildings:assign_manager",

        "vendors:approve", "vendors:read_all",
        "requirements:configure",

        "cois:read", "cois:manage",

        "reports:read", "data:export",
        "users:manage",
        "guards:create",
        "access:check",
        "audit:read",

        # Manual trigger of the daily expiry sweep
        "admin:expiry_sweep",
    ],

    # =====================================================
    # PORTFOLIO MANAGER
    # =====================================================
    Role.PORTFOLIO_MANAGER: [
        "users:invite_property_manager",
        "users:invite_building_owner",
        "users:invite_tenant",
        "users:invite_vendor",
        "users:invite_guard",

        "buildings:read", "buildings:create", "buildings:write",
        "buildings:assign_manager",

        "vendors:approve", "vendors:read_all",
        "requirements:configure",

        "cois:read", "cois:manage",

        "reports:read", "data:export",
        "users:manage",
        "guards:create",
        "access:check",
        "audit:read",
    ],

    # =====================================================
    # PROPERTY MANAGER: cannot create or delete buildings
    # =====================================================
    Role.PROPERTY_MANAGER: [
        "users:invite_building_owner",
        "users:invite_tenant",
        "users:invite_vendor",
        "users:invite_guard",

        "buildings:read", "buildings:write",

        "vendors:approve", "vendors:read_all",
        "requirements:configure",

        "cois:read", "cois:manage",

        "reports:read", "data:export",
        "users:manage",
        "guards:create",
        "access:check",
        "audit:read",
    ],

    # =====================================================
    # BUILDING OWNER: read-only over owned buildings
    # =====================================================
    Role.BUILDING_OWNER: [
        "buildings:read",
        "vendors:read_all",
        "cois:read",
        "reports:read", "data:export",
    ],

    # =====================================================
    # TENANT
    # =====================================================
    Role.TENANT: [
        "buildings:read",
        "cois:read", "cois:upload_own",
    ],

    # =====================================================
    # VENDOR
    # =====================================================
    Role.VENDOR: [
        "buildings:read",
        "cois:read", "cois:upload_own",
    ],

    # =====================================================
    # GUARD: status-only COI view, QR scanning
    # =====================================================
    Role.GUARD: [
        "buildings:read",
        "cois:read",
        "access:check", "access:scan_qr",
    ],
}


# Every capability some role holds
ALL_CAPABILITIES = frozenset(
    capability for capabilities in ROLE_PERMISSIONS.values() for capability in capabilities
)


def has_capability(user, capability: str) -> bool:
    role = as_role(getattr(user, "role", None))
    if role is None:
        return False
    return capability in ROLE_PERMISSIONS.get(role, [])


# ============================================================
# NAMED PREDICATES
# The API layer consults these before calling a mutation.
# ============================================================

# -------------------- billing & admin --------------------

def can_view_billing(user) -> bool:
    return has_capability(user, "billing:read")


def can_manage_subscription(user) -> bool:
    return has_capability(user, "subscription:manage")


# -------------------- team management --------------------

def can_invite_account_owner(user=None) -> bool:
    # Account owners are created with the organization, never invited
    return False


def can_invite_portfolio_manager(user) -> bool:
    return has_capability(user, "users:invite_portfolio_manager")


def can_invite_property_manager(user) -> bool:
    return has_capability(user, "users:invite_property_manager")


def can_invite_building_owner(user) -> bool:
    return has_capability(user, "users:invite_building_owner")


def can_invite_tenant(user) -> bool:
    return has_capability(user, "users:invite_tenant")


def can_invite_vendor(user) -> bool:
    return has_capability(user, "users:invite_vendor")


def can_invite_guard(user) -> bool:
    return has_capability(user, "users:invite_guard")


# -------------------- buildings --------------------

def can_create_buildings(user) -> bool:
    return has_capability(user, "buildings:create")


def can_edit_building(user) -> bool:
    return has_capability(user, "buildings:write")


def can_delete_building(user) -> bool:
    return has_capability(user, "buildings:delete")


def can_assign_property_manager(user) -> bool:
    return has_capability(user, "buildings:assign_manager")


# -------------------- vendors --------------------

def can_approve_vendors(user) -> bool:
    return has_capability(user, "vendors:approve")


def can_view_all_vendors(user) -> bool:
    return has_capability(user, "vendors:read_all")


def can_configure_requirements(user) -> bool:
    return has_capability(user, "requirements:configure")


# -------------------- COIs --------------------

def can_manage_cois(user) -> bool:
    return has_capability(user, "cois:manage")


def can_upload_own_coi(user) -> bool:
    return has_capability(user, "cois:upload_own")


def can_view_coi(user) -> bool:
    # Vendors and tenants only their own, guards status only
    return has_capability(user, "cois:read")


# -------------------- reports --------------------

def can_view_reports(user) -> bool:
    return has_capability(user, "reports:read")


def can_export_data(user) -> bool:
    return has_capability(user, "data:export")


# -------------------- guards & access --------------------

def can_create_guards(user) -> bool:
    return has_capability(user, "guards:create")


def can_scan_vendor_qr(user) -> bool:
    return has_capability(user, "access:scan_qr")


# -------------------- audit --------------------

def can_view_audit_logs(user) -> bool:
    return has_capability(user, "audit:read")
