# routers/audit.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from core.audit import list_audit_logs
from database import get_session
from dependencies.auth import CurrentUser, requires_permission
from models import AuditLogFilters, AuditLogPage

router = APIRouter(
    prefix="/audit",
    tags=["Audit"],
)


# -----------------------------------------------------
# GET /audit
# Read-only reporting over the audit trail of the
# caller's organization
# -----------------------------------------------------
@router.get(
    "",
    response_model=AuditLogPage,
    summary="List audit log entries",
)
def list_audit(
    entity: Optional[str] = None,
    entity_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    action: Optional[str] = None,
    from_date: Optional[datetime] = Query(None, alias="from"),
    to_date: Optional[datetime] = Query(None, alias="to"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    session: Session = Depends(get_session),
    current_user: CurrentUser = Depends(requires_permission("audit:read")),
):
    if not current_user.organization_id:
        raise HTTPException(403, "No organization to report on")

    filters = AuditLogFilters(
        organization_id=current_user.organization_id,
        entity=entity,
        entity_id=entity_id,
        actor_id=actor_id,
        action=action,
        from_date=from_date,
        to_date=to_date,
        page=page,
        limit=limit,
        sort=sort,
    )
    return list_audit_logs(session, filters)
