# services/cois.py

from datetime import datetime
from typing import Optional

from sqlmodel import Session

from core.audit import record_audit
from core.errors import InvalidTransitionError, NotFoundError
from core.logging_config import logger
from core.notifications import send_coi_rejected_email
from core.utils import to_naive_utc, utcnow
from database import commit_or_raise
from models.enums import AuditAction, COIStatus
from models import COI, Building, COICreate, COIReviewFlags, Tenant, Vendor


REVIEW_OUTCOMES = (COIStatus.APPROVED, COIStatus.REJECTED)


def get_coi(session: Session, coi_id: str) -> COI:
    coi = session.get(COI, coi_id)
    if coi is None:
        raise NotFoundError("COI", coi_id)
    return coi


# ============================================================
# CREATE (always PENDING)
# ============================================================
def create_coi(session: Session, payload: COICreate, actor_id: Optional[str] = None) -> COI:
    if bool(payload.vendor_id) == bool(payload.tenant_id):
        raise InvalidTransitionError("A certificate belongs to exactly one vendor or one tenant")

    building = session.get(Building, payload.building_id)
    if building is None:
        raise NotFoundError("Building", payload.building_id)

    if payload.vendor_id and session.get(Vendor, payload.vendor_id) is None:
        raise NotFoundError("Vendor", payload.vendor_id)

    if payload.tenant_id:
        tenant = session.get(Tenant, payload.tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", payload.tenant_id)
        if tenant.building_id != payload.building_id:
            raise InvalidTransitionError("Tenant does not belong to this building")

    effective = to_naive_utc(payload.effective_date)
    expiration = to_naive_utc(payload.expiration_date)
    if expiration < effective:
        raise InvalidTransitionError("Expiration date is before the effective date")

    coi = COI(
        **payload.model_dump(exclude={"effective_date", "expiration_date"}),
        effective_date=effective,
        expiration_date=expiration,
        status=COIStatus.PENDING,
    )
    session.add(coi)
    session.flush()

    record_audit(
        session, "COI", coi.id, AuditAction.CREATE_COI,
        actor_id=actor_id, metadata={"building_id": coi.building_id},
        organization_id=building.organization_id,
    )
    commit_or_raise(session, "Failed to create COI")
    session.refresh(coi)
    return coi


# ============================================================
# REVIEW
# ============================================================
def _organization_of(session: Session, coi: COI) -> Optional[str]:
    building = session.get(Building, coi.building_id)
    return building.organization_id if building else None


def _holder_contact(session: Session, coi: COI):
    if coi.vendor_id:
        vendor = session.get(Vendor, coi.vendor_id)
        if vendor is not None:
            return vendor.contact_email, vendor.company_name
    if coi.tenant_id:
        tenant = session.get(Tenant, coi.tenant_id)
        if tenant is not None:
            return tenant.contact_email, tenant.business_name
    return None, None


def review_coi(
    session: Session,
    coi_id: str,
    status: COIStatus,
    notes: Optional[str] = None,
    flags: Optional[COIReviewFlags] = None,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> COI:
    """
    Overwrites the review status (re-review is allowed) and records
    REVIEW_COI in the same transaction. A rejection also emails the
    holder; that email never affects the review itself.
    """
    status = COIStatus(status)
    if status not in REVIEW_OUTCOMES:
        raise InvalidTransitionError("A review must approve or reject")

    coi = get_coi(session, coi_id)

    coi.status = status
    coi.review_notes = notes
    coi.reviewed_by = actor_id
    coi.reviewed_at = utcnow() if now is None else to_naive_utc(now)

    if flags is not None:
        if flags.additional_insured is not None:
            coi.additional_insured = flags.additional_insured
        if flags.waiver_of_subrogation is not None:
            coi.waiver_subrogation = flags.waiver_of_subrogation

    session.add(coi)
    session.flush()

    record_audit(
        session, "COI", coi.id, AuditAction.REVIEW_COI,
        actor_id=actor_id, metadata={"status": status.value, "notes": notes},
        organization_id=_organization_of(session, coi),
    )
    commit_or_raise(session, "Failed to review COI")
    session.refresh(coi)

    if status == COIStatus.REJECTED:
        email, name = _holder_contact(session, coi)
        if email:
            try:
                send_coi_rejected_email(email, name or "Vendor", coi.id, notes)
            except Exception as e:
                logger.warning(f"Rejection email for COI {coi.id} failed: {e}")

    return coi
