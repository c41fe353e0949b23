# core/permission_helpers.py

from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from fastapi import Depends, HTTPException
from sqlmodel import Session, select

from core.permissions import has_capability, can_approve_vendors
from core.roles import MANAGEMENT_ROLES, as_role, can_manage_user
from dependencies.auth import get_current_user, CurrentUser
from models.enums import Role, VendorAuthStatus
from models import (
    COI,
    Building,
    Guard,
    GuardBuildingAssignment,
    Tenant,
    User,
    UserBuildingAccess,
    Vendor,
    VendorBuildingAuthorization,
)


# -----------------------------------------------------
# Every check here returns a bool and never raises for
# "no access". A missing row is the same as no access.
# -----------------------------------------------------


class ResourceRef(NamedTuple):
    kind: str  # "building" | "coi" | "vendor" | "tenant" | "user"
    id: str


# ============================================================
# PROFILE LOOKUPS
# ============================================================

def get_vendor_profile(session: Session, user) -> Optional[Vendor]:
    return session.exec(select(Vendor).where(Vendor.user_id == user.id)).first()


def get_tenant_profile(session: Session, user) -> Optional[Tenant]:
    return session.exec(select(Tenant).where(Tenant.user_id == user.id)).first()


def get_guard_profile(session: Session, user) -> Optional[Guard]:
    return session.exec(select(Guard).where(Guard.user_id == user.id)).first()


# ============================================================
# BUILDING VISIBILITY: one predicate per role
# ============================================================

def _account_owner_sees(session: Session, user, building_id: str) -> bool:
    building = session.get(Building, building_id)
    return (
        building is not None
        and user.organization_id is not None
        and building.organization_id == user.organization_id
    )


def _manager_sees(session: Session, user, building_id: str) -> bool:
    # Organization membership alone is not enough for managers
    access = session.exec(
        select(UserBuildingAccess.id)
        .where(UserBuildingAccess.user_id == user.id)
        .where(UserBuildingAccess.building_id == building_id)
    ).first()
    return access is not None


def _building_owner_sees(session: Session, user, building_id: str) -> bool:
    building = session.get(Building, building_id)
    return building is not None and building.owner_id == user.id


def _tenant_sees(session: Session, user, building_id: str) -> bool:
    tenant = get_tenant_profile(session, user)
    return tenant is not None and tenant.building_id == building_id


def _vendor_sees(session: Session, user, building_id: str) -> bool:
    authorization = session.exec(
        select(VendorBuildingAuthorization.id)
        .join(Vendor, Vendor.id == VendorBuildingAuthorization.vendor_id)
        .where(Vendor.user_id == user.id)
        .where(VendorBuildingAuthorization.building_id == building_id)
        .where(VendorBuildingAuthorization.status == VendorAuthStatus.APPROVED)
    ).first()
    return authorization is not None


def _guard_sees(session: Session, user, building_id: str) -> bool:
    guard = get_guard_profile(session, user)
    if guard is None:
        return False

    assignment = session.exec(
        select(GuardBuildingAssignment.id)
        .where(GuardBuildingAssignment.guard_id == guard.id)
        .where(GuardBuildingAssignment.building_id == building_id)
    ).first()
    return assignment is not None


BUILDING_VISIBILITY: Dict[Role, Callable[[Session, object, str], bool]] = {
    Role.ACCOUNT_OWNER: _account_owner_sees,
    Role.PORTFOLIO_MANAGER: _manager_sees,
    Role.PROPERTY_MANAGER: _manager_sees,
    Role.BUILDING_OWNER: _building_owner_sees,
    Role.TENANT: _tenant_sees,
    Role.VENDOR: _vendor_sees,
    Role.GUARD: _guard_sees,
}


def can_view_building(session: Session, user, building_id: str) -> bool:
    if not building_id:
        return False

    check = BUILDING_VISIBILITY.get(as_role(user.role))
    if check is None:
        return False

    return check(session, user, building_id)


# ============================================================
# BUILDING ENUMERATION: same rule, listing form
# ============================================================

def _account_owner_buildings(session: Session, user) -> List[Building]:
    if user.organization_id is None:
        return []
    return list(session.exec(
        select(Building).where(Building.organization_id == user.organization_id)
    ))


def _manager_buildings(session: Session, user) -> List[Building]:
    return list(session.exec(
        select(Building)
        .join(UserBuildingAccess, UserBuildingAccess.building_id == Building.id)
        .where(UserBuildingAccess.user_id == user.id)
    ))


def _building_owner_buildings(session: Session, user) -> List[Building]:
    return list(session.exec(select(Building).where(Building.owner_id == user.id)))


def _tenant_buildings(session: Session, user) -> List[Building]:
    return list(session.exec(
        select(Building)
        .join(Tenant, Tenant.building_id == Building.id)
        .where(Tenant.user_id == user.id)
    ))


def _vendor_buildings(session: Session, user) -> List[Building]:
    return list(session.exec(
        select(Building)
        .join(VendorBuildingAuthorization, VendorBuildingAuthorization.building_id == Building.id)
        .join(Vendor, Vendor.id == VendorBuildingAuthorization.vendor_id)
        .where(Vendor.user_id == user.id)
        .where(VendorBuildingAuthorization.status == VendorAuthStatus.APPROVED)
    ))


def _guard_buildings(session: Session, user) -> List[Building]:
    return list(session.exec(
        select(Building)
        .join(GuardBuildingAssignment, GuardBuildingAssignment.building_id == Building.id)
        .join(Guard, Guard.id == GuardBuildingAssignment.guard_id)
        .where(Guard.user_id == user.id)
    ))


BUILDING_ENUMERATORS: Dict[Role, Callable[[Session, object], List[Building]]] = {
    Role.ACCOUNT_OWNER: _account_owner_buildings,
    Role.PORTFOLIO_MANAGER: _manager_buildings,
    Role.PROPERTY_MANAGER: _manager_buildings,
    Role.BUILDING_OWNER: _building_owner_buildings,
    Role.TENANT: _tenant_buildings,
    Role.VENDOR: _vendor_buildings,
    Role.GUARD: _guard_buildings,
}


def get_user_buildings(session: Session, user) -> List[Building]:
    """Every building `can_view_building` would allow, sorted by name."""
    enumerate_for = BUILDING_ENUMERATORS.get(as_role(user.role))
    if enumerate_for is None:
        return []

    return sorted(enumerate_for(session, user), key=lambda b: (b.name or "", b.id))


def get_user_building_ids(session: Session, user) -> List[str]:
    return [b.id for b in get_user_buildings(session, user)]


# ============================================================
# COI ACCESS
# ============================================================

def can_access_coi(session: Session, user, coi_id: str) -> bool:
    """
    Management and building owners: building visibility.
    Vendors and tenants: only certificates they hold.
    Guards: building visibility (the API shows them status only).
    """
    coi = session.get(COI, coi_id) if coi_id else None
    if coi is None:
        return False

    role = as_role(user.role)

    if role in MANAGEMENT_ROLES or role in (Role.BUILDING_OWNER, Role.GUARD):
        return can_view_building(session, user, coi.building_id)

    if role == Role.VENDOR:
        vendor = session.get(Vendor, coi.vendor_id) if coi.vendor_id else None
        return vendor is not None and vendor.user_id == user.id

    if role == Role.TENANT:
        tenant = session.get(Tenant, coi.tenant_id) if coi.tenant_id else None
        return tenant is not None and tenant.user_id == user.id

    return False


# ============================================================
# ACTION CHECKS BACKED BY RELATIONS
# ============================================================

def can_manage_vendor_in_building(session: Session, user, building_id: str) -> bool:
    if not can_approve_vendors(user):
        return False
    return can_view_building(session, user, building_id)


def can_check_access(session: Session, user, building_id: str) -> bool:
    """Guards must be assigned; management needs building visibility."""
    role = as_role(user.role)

    if role == Role.GUARD:
        return _guard_sees(session, user, building_id)

    if role in MANAGEMENT_ROLES:
        return can_view_building(session, user, building_id)

    return False


def user_can_access_vendor(session: Session, user, vendor_id: str) -> bool:
    role = as_role(user.role)

    if role in MANAGEMENT_ROLES:
        # Vendors are cross-organization: visible once authorized
        # (any status) in one of the user's organization's buildings
        if user.organization_id is None:
            return False
        match = session.exec(
            select(VendorBuildingAuthorization.id)
            .join(Building, Building.id == VendorBuildingAuthorization.building_id)
            .where(VendorBuildingAuthorization.vendor_id == vendor_id)
            .where(Building.organization_id == user.organization_id)
        ).first()
        return match is not None

    if role == Role.BUILDING_OWNER:
        match = session.exec(
            select(VendorBuildingAuthorization.id)
            .join(Building, Building.id == VendorBuildingAuthorization.building_id)
            .where(VendorBuildingAuthorization.vendor_id == vendor_id)
            .where(VendorBuildingAuthorization.status == VendorAuthStatus.APPROVED)
            .where(Building.owner_id == user.id)
        ).first()
        return match is not None

    if role == Role.VENDOR:
        vendor = get_vendor_profile(session, user)
        return vendor is not None and vendor.id == vendor_id

    return False


def validate_organization_access(session: Session, user, entity_id: str, entity_type: str) -> bool:
    if entity_type == "building":
        building = session.get(Building, entity_id)
        return building is not None and building.organization_id == user.organization_id

    if entity_type == "vendor":
        # Vendors are cross-organization
        return True

    if entity_type == "tenant":
        tenant = session.get(Tenant, entity_id)
        if tenant is None:
            return False
        building = session.get(Building, tenant.building_id)
        return building is not None and building.organization_id == user.organization_id

    return False


def _can_manage_user_id(session: Session, user, target_id: str) -> bool:
    target = session.get(User, target_id)
    return target is not None and can_manage_user(user, target)


def _can_see_tenant(session: Session, user, tenant_id: str) -> bool:
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        return False
    if as_role(user.role) == Role.TENANT:
        return tenant.user_id == user.id
    return can_view_building(session, user, tenant.building_id)


# ============================================================
# resolve_permission: capability first, then the relation
# registered for (action, resource kind)
# ============================================================

RELATION_CHECKS: Dict[Tuple[str, str], Callable[[Session, object, str], bool]] = {
    ("buildings:read", "building"): can_view_building,
    ("buildings:write", "building"): can_view_building,
    ("buildings:delete", "building"): can_view_building,
    ("buildings:assign_manager", "building"): can_view_building,
    ("reports:read", "building"): can_view_building,
    ("data:export", "building"): can_view_building,
    ("requirements:configure", "building"): can_view_building,
    ("guards:create", "building"): can_view_building,
    ("vendors:approve", "building"): can_manage_vendor_in_building,
    ("access:check", "building"): can_check_access,
    ("access:scan_qr", "building"): can_check_access,
    ("cois:manage", "building"): can_view_building,
    ("cois:read", "coi"): can_access_coi,
    ("cois:manage", "coi"): can_access_coi,
    ("vendors:read_all", "vendor"): user_can_access_vendor,
    ("buildings:read", "tenant"): _can_see_tenant,
    ("users:manage", "user"): _can_manage_user_id,
}


def resolve_permission(
    session: Session,
    user,
    action: str,
    resource: Optional[ResourceRef] = None,
) -> bool:
    if not has_capability(user, action):
        return False

    if resource is None:
        return True

    check = RELATION_CHECKS.get((action, resource.kind))
    if check is None:
        return False

    return check(session, user, resource.id)


# ============================================================
# FastAPI dependency wrapper
# ============================================================
def requires_permission(permission: str):
    """
    Usage:
        @router.post("/", dependencies=[Depends(requires_permission("cois:manage"))])
    """

    def dependency(current_user: CurrentUser = Depends(get_current_user)):
        if not has_capability(current_user, permission):
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions: '{permission}' required"
            )
        return current_user

    return dependency


def ensure_permission(session: Session, user, action: str, resource: Optional[ResourceRef] = None) -> None:
    """Route-side guard: a False from the resolver becomes a 403."""
    if not resolve_permission(session, user, action, resource):
        raise HTTPException(
            status_code=403,
            detail=f"Insufficient permissions: '{action}' required",
        )
