# routers/reports.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from core.compliance import tenant_summary, vendor_summary
from core.permission_helpers import ResourceRef, ensure_permission
from database import get_session
from dependencies.auth import CurrentUser, get_current_user
from models import TenantComplianceSummary, VendorComplianceSummary

router = APIRouter(
    prefix="/reports",
    tags=["Reports"],
)


# -----------------------------------------------------
# GET /reports/vendors/{vendor_id}
# Cross-building rollup for one vendor
# -----------------------------------------------------
@router.get(
    "/vendors/{vendor_id}",
    response_model=VendorComplianceSummary,
    summary="Vendor compliance rollup",
)
def vendor_report(
    vendor_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "vendors:read_all", ResourceRef("vendor", vendor_id))
    return vendor_summary(session, vendor_id, as_of)


# -----------------------------------------------------
# GET /reports/tenants/{tenant_id}
# -----------------------------------------------------
@router.get(
    "/tenants/{tenant_id}",
    response_model=TenantComplianceSummary,
    summary="Tenant certificate counts",
)
def tenant_report(
    tenant_id: str,
    as_of: Optional[datetime] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_permission(session, current_user, "buildings:read", ResourceRef("tenant", tenant_id))
    return tenant_summary(session, tenant_id, as_of)
