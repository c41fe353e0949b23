# routers/permissions.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from core.permission_helpers import RELATION_CHECKS, ResourceRef, resolve_permission
from core.permissions import ROLE_PERMISSIONS
from database import get_session
from dependencies.auth import CurrentUser, get_current_user

router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
)


RESOURCE_KINDS = sorted({kind for _, kind in RELATION_CHECKS})


# -----------------------------------------------------
# GET /permissions/check
# -----------------------------------------------------
@router.get("/check", summary="Can the caller perform an action (on a resource)?")
def check_permission(
    action: str = Query(..., description="Capability, e.g. buildings:read"),
    resource_kind: Optional[str] = Query(None, description=f"One of {RESOURCE_KINDS}"),
    resource_id: Optional[str] = None,
    current_user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if bool(resource_kind) != bool(resource_id):
        raise HTTPException(400, "resource_kind and resource_id go together")

    resource = ResourceRef(resource_kind, resource_id) if resource_kind else None
    allowed = resolve_permission(session, current_user, action, resource)

    return {
        "action": action,
        "resource": resource._asdict() if resource else None,
        "allowed": allowed,
    }


# -----------------------------------------------------
# GET /permissions/me
# -----------------------------------------------------
@router.get("/me", summary="Capabilities of the caller's role")
def my_permissions(current_user: CurrentUser = Depends(get_current_user)):
    return {
        "role": current_user.role,
        "capabilities": sorted(ROLE_PERMISSIONS.get(current_user.role, [])),
    }
