# routers/buildings.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from core.compliance import building_compliance_summary, building_tenants, building_vendors
from core.permission_helpers import ResourceRef, ensure_permission, get_user_buildings
from core.permissions import can_create_buildings
from database import get_session
from dependencies.auth import CurrentUser, get_current_user
from models import (
    Building,
    BuildingComplianceSummary,
    BuildingCreate,
    BuildingTenantRow,
    BuildingVendorRow,
    GuardBuildingAssignment,
    UserBuildingAccess,
    VendorBuildingAuthorization,
)
from services import buildings as building_service
from services import guards as guard_service
from services import vendors as vendor_service

router = APIRouter(
    prefix="/buildings",
    tags=["Buildings"],
)


# ============================================================
# Pydantic Models
# ============================================================
class BuildingOwnerUpdate(BaseModel):
    owner_id: str


class VendorRejection(BaseModel):
    notes: Optional[str] = None


def _building(building_id: str) -> ResourceRef:
    return ResourceRef("building", building_id)


# ============================================================
# LIST / CREATE / DELETE
# ============================================================
@router.get("", response_model=List[Building], summary="Buildings visible to the caller")
def list_buildings(
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_user_buildings(session, current_user)


@router.post("", response_model=Building, status_code=201, summary="Create a building")
def create_building(
    payload: BuildingCreate,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not can_create_buildings(current_user):
        raise HTTPException(403, "Insufficient permissions: 'buildings:create' required")
    return building_service.create_building(session, payload, current_user)


@router.delete("/{building_id}", status_code=204, summary="Delete an empty building")
def delete_building(
    building_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "buildings:delete", _building(building_id))
    building_service.delete_building(session, building_id, current_user.id)


# ============================================================
# MANAGERS / OWNER
# ============================================================
@router.post(
    "/{building_id}/managers/{user_id}",
    response_model=UserBuildingAccess,
    summary="Grant a manager access to the building",
)
def assign_manager(
    building_id: str,
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "buildings:assign_manager", _building(building_id))
    ensure_permission(session, current_user, "users:manage", ResourceRef("user", user_id))
    return building_service.assign_building_access(session, building_id, user_id, current_user.id)


@router.delete("/{building_id}/managers/{user_id}", status_code=204, summary="Revoke a manager's access")
def revoke_manager(
    building_id: str,
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "buildings:assign_manager", _building(building_id))
    ensure_permission(session, current_user, "users:manage", ResourceRef("user", user_id))
    building_service.revoke_building_access(session, building_id, user_id, current_user.id)


@router.put("/{building_id}/owner", response_model=Building, summary="Set the building owner")
def set_owner(
    building_id: str,
    payload: BuildingOwnerUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "buildings:write", _building(building_id))
    return building_service.set_building_owner(session, building_id, payload.owner_id, current_user.id)


# ============================================================
# COMPLIANCE
# ============================================================
@router.get(
    "/{building_id}/compliance",
    response_model=BuildingComplianceSummary,
    summary="Compliance statistics for a building",
)
def building_compliance(
    building_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "reports:read", _building(building_id))
    return building_compliance_summary(session, building_id, as_of)


@router.get("/{building_id}/vendors", response_model=List[BuildingVendorRow], summary="Vendors of a building")
def list_building_vendors(
    building_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "reports:read", _building(building_id))
    return building_vendors(session, building_id, as_of)


@router.get("/{building_id}/tenants", response_model=List[BuildingTenantRow], summary="Tenants of a building")
def list_building_tenants(
    building_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "reports:read", _building(building_id))
    return building_tenants(session, building_id, as_of)


# ============================================================
# VENDOR AUTHORIZATION
# ============================================================
@router.post(
    "/{building_id}/vendors/{vendor_id}/approve",
    response_model=VendorBuildingAuthorization,
    summary="Approve a vendor for the building",
)
def approve_vendor(
    building_id: str,
    vendor_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "vendors:approve", _building(building_id))
    return vendor_service.approve_vendor_for_building(session, vendor_id, building_id, current_user.id)


@router.post(
    "/{building_id}/vendors/{vendor_id}/reject",
    response_model=VendorBuildingAuthorization,
    summary="Reject a vendor for the building",
)
def reject_vendor(
    building_id: str,
    vendor_id: str,
    payload: Optional[VendorRejection] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "vendors:approve", _building(building_id))
    notes = payload.notes if payload else None
    return vendor_service.reject_vendor_for_building(session, vendor_id, building_id, current_user.id, notes)


# ============================================================
# GUARDS
# ============================================================
@router.post(
    "/{building_id}/guards/{guard_id}",
    response_model=GuardBuildingAssignment,
    summary="Assign a guard to the building",
)
def assign_guard(
    building_id: str,
    guard_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "guards:create", _building(building_id))
    return guard_service.assign_guard_to_building(session, guard_id, building_id, current_user.id)
