# routers/access.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from core.compliance import check_tenant_access, evaluate_access, list_access_by_building
from core.permission_helpers import can_check_access
from database import get_session
from dependencies.auth import CurrentUser, get_current_user
from models import AccessDecision, Tenant, VendorAccessRow

router = APIRouter(
    prefix="/access",
    tags=["Access"],
)


def _require_gate(session: Session, user: CurrentUser, building_id: str) -> None:
    if not can_check_access(session, user, building_id):
        raise HTTPException(403, "Not allowed to check access for this building")


# -----------------------------------------------------
# GET /access/check
# Can this vendor work in this building right now?
# -----------------------------------------------------
@router.get("/check", response_model=AccessDecision, summary="Vendor access decision")
def check_vendor_access(
    vendor_id: str,
    building_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _require_gate(session, current_user, building_id)
    return evaluate_access(session, vendor_id, building_id, as_of)


# -----------------------------------------------------
# GET /access/vendors
# One decision per authorized vendor
# -----------------------------------------------------
@router.get("/vendors", response_model=List[VendorAccessRow], summary="Access decisions for a building")
def list_vendor_access(
    building_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    _require_gate(session, current_user, building_id)
    return list_access_by_building(session, building_id, as_of)


# -----------------------------------------------------
# GET /access/tenants/{tenant_id}
# -----------------------------------------------------
@router.get("/tenants/{tenant_id}", response_model=AccessDecision, summary="Tenant access decision")
def check_tenant(
    tenant_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        raise HTTPException(404, "Tenant not found")

    _require_gate(session, current_user, tenant.building_id)
    return check_tenant_access(session, tenant_id, as_of)
