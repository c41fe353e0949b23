# routers/cois.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from core.compliance import is_compliant
from core.permission_helpers import (
    ResourceRef,
    can_view_building,
    ensure_permission,
    get_tenant_profile,
    get_vendor_profile,
)
from core.permissions import can_manage_cois, can_upload_own_coi
from core.roles import as_role
from database import get_session
from dependencies.auth import CurrentUser, get_current_user
from models.enums import Role
from models import COI, COICreate, COIReview
from services import cois as coi_service

router = APIRouter(
    prefix="/cois",
    tags=["COIs"],
)


def _status_only(coi: COI) -> dict:
    """What a guard at the gate gets to see."""
    return {
        "id": coi.id,
        "building_id": coi.building_id,
        "status": coi.status,
        "effective_date": coi.effective_date,
        "expiration_date": coi.expiration_date,
        "is_valid": is_compliant(coi),
    }


def _may_create(session: Session, user: CurrentUser, payload: COICreate) -> bool:
    if can_manage_cois(user) and can_view_building(session, user, payload.building_id):
        return True

    if not can_upload_own_coi(user):
        return False

    # Vendors and tenants upload only for themselves
    if payload.vendor_id:
        vendor = get_vendor_profile(session, user)
        return vendor is not None and vendor.id == payload.vendor_id

    if payload.tenant_id:
        tenant = get_tenant_profile(session, user)
        return tenant is not None and tenant.id == payload.tenant_id

    return False


# -----------------------------------------------------
# POST /cois
# New certificate, always PENDING
# -----------------------------------------------------
@router.post("", response_model=COI, status_code=201, summary="Submit a certificate")
def create_coi(
    payload: COICreate,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not _may_create(session, current_user, payload):
        raise HTTPException(403, "Not allowed to submit this certificate")
    return coi_service.create_coi(session, payload, actor_id=current_user.id)


# -----------------------------------------------------
# GET /cois/{coi_id}
# -----------------------------------------------------
@router.get("/{coi_id}", summary="Certificate detail (status only for guards)")
def get_coi(
    coi_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    coi = coi_service.get_coi(session, coi_id)
    ensure_permission(session, current_user, "cois:read", ResourceRef("coi", coi_id))

    if as_role(current_user.role) == Role.GUARD:
        return _status_only(coi)
    return coi


# -----------------------------------------------------
# POST /cois/{coi_id}/review
# -----------------------------------------------------
@router.post("/{coi_id}/review", response_model=COI, summary="Approve or reject a certificate")
def review_coi(
    coi_id: str,
    payload: COIReview,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    coi_service.get_coi(session, coi_id)
    ensure_permission(session, current_user, "cois:manage", ResourceRef("coi", coi_id))

    return coi_service.review_coi(
        session,
        coi_id,
        payload.status,
        notes=payload.notes,
        flags=payload.flags,
        actor_id=current_user.id,
    )
