# services/vendors.py

from typing import Optional

from sqlmodel import Session, select

from core.audit import record_audit
from core.errors import NotFoundError
from core.utils import utcnow
from database import commit_or_raise
from models.enums import AuditAction, VendorAuthStatus
from models import Building, Vendor, VendorBuildingAuthorization


def _get_authorization(session: Session, vendor_id: str, building_id: str) -> Optional[VendorBuildingAuthorization]:
    return session.exec(
        select(VendorBuildingAuthorization)
        .where(VendorBuildingAuthorization.vendor_id == vendor_id)
        .where(VendorBuildingAuthorization.building_id == building_id)
    ).first()


def _require(session: Session, vendor_id: str, building_id: str) -> Building:
    if session.get(Vendor, vendor_id) is None:
        raise NotFoundError("Vendor", vendor_id)
    building = session.get(Building, building_id)
    if building is None:
        raise NotFoundError("Building", building_id)
    return building


# -----------------------------------------------------
# Decisions are upserts; each one clears the opposite
# decision's fields.
# -----------------------------------------------------
def approve_vendor_for_building(
    session: Session, vendor_id: str, building_id: str, actor_id: str
) -> VendorBuildingAuthorization:
    building = _require(session, vendor_id, building_id)

    authorization = _get_authorization(session, vendor_id, building_id)
    if authorization is None:
        authorization = VendorBuildingAuthorization(vendor_id=vendor_id, building_id=building_id)

    authorization.status = VendorAuthStatus.APPROVED
    authorization.approved_by = actor_id
    authorization.approved_at = utcnow()
    authorization.rejected_by = None
    authorization.rejected_at = None
    authorization.notes = None

    session.add(authorization)
    session.flush()

    record_audit(
        session, "VendorBuildingAuthorization", authorization.id, AuditAction.APPROVE_VENDOR,
        actor_id=actor_id, metadata={"vendor_id": vendor_id, "building_id": building_id},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to approve vendor")
    session.refresh(authorization)
    return authorization


def reject_vendor_for_building(
    session: Session,
    vendor_id: str,
    building_id: str,
    actor_id: str,
    notes: Optional[str] = None,
) -> VendorBuildingAuthorization:
    building = _require(session, vendor_id, building_id)

    authorization = _get_authorization(session, vendor_id, building_id)
    if authorization is None:
        authorization = VendorBuildingAuthorization(vendor_id=vendor_id, building_id=building_id)

    authorization.status = VendorAuthStatus.REJECTED
    authorization.rejected_by = actor_id
    authorization.rejected_at = utcnow()
    authorization.approved_by = None
    authorization.approved_at = None
    authorization.notes = notes

    session.add(authorization)
    session.flush()

    record_audit(
        session, "VendorBuildingAuthorization", authorization.id, AuditAction.REJECT_VENDOR,
        actor_id=actor_id,
        metadata={"vendor_id": vendor_id, "building_id": building_id, "notes": notes},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to reject vendor")
    session.refresh(authorization)
    return authorization


def is_authorized_for_building(session: Session, vendor_id: str, building_id: str) -> bool:
    authorization = _get_authorization(session, vendor_id, building_id)
    return authorization is not None and authorization.status == VendorAuthStatus.APPROVED
