# core/compliance.py

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from core.errors import NotFoundError
from core.utils import to_naive_utc, utcnow
from models.enums import COIStatus, VendorAuthStatus
from models import (
    COI,
    AccessDecision,
    Building,
    BuildingComplianceSummary,
    BuildingTenantRow,
    BuildingVendorRow,
    GuardBuildingAssignment,
    Tenant,
    TenantComplianceSummary,
    Vendor,
    VendorAccessRow,
    VendorBuildingAuthorization,
    VendorComplianceSummary,
)


# ============================================================
# UPPER-BOUND RULE
#
# A certificate is still valid at the instant equal to its
# expiration_date. Flip this to make expiration exclusive;
# nothing else in the codebase compares against the bound.
# ============================================================
EXPIRATION_IS_INCLUSIVE = True


REASON_VALID = "valid"
REASON_EXPIRED = "expired"
REASON_NOT_YET_EFFECTIVE = "not yet effective"
REASON_MISSING_DATES = "missing coverage dates"
REASON_NO_APPROVED = "no approved certificate"


def _as_of(value: Optional[datetime]) -> datetime:
    return utcnow() if value is None else to_naive_utc(value)


def _within_upper_bound(expiration_date: datetime, as_of: datetime) -> bool:
    if EXPIRATION_IS_INCLUSIVE:
        return as_of <= expiration_date
    return as_of < expiration_date


# ============================================================
# THE PREDICATE
# ============================================================

def is_compliant(coi: COI, as_of: Optional[datetime] = None) -> bool:
    """
    True iff the certificate is APPROVED, both coverage dates are
    present and `as_of` falls inside [effective_date, expiration_date].
    """
    if coi.status != COIStatus.APPROVED:
        return False

    effective = to_naive_utc(coi.effective_date)
    expiration = to_naive_utc(coi.expiration_date)
    if effective is None or expiration is None:
        return False

    as_of = _as_of(as_of)
    return effective <= as_of and _within_upper_bound(expiration, as_of)


def is_expired(coi: COI, as_of: Optional[datetime] = None) -> bool:
    """Past the upper bound, whatever the review status."""
    expiration = to_naive_utc(coi.expiration_date)
    if expiration is None:
        return False
    return not _within_upper_bound(expiration, _as_of(as_of))


def _latest_approved(cois: Iterable[COI]) -> Optional[COI]:
    approved = [c for c in cois if c.status == COIStatus.APPROVED]
    if not approved:
        return None
    return max(approved, key=lambda c: (c.created_at, c.id))


def _verdict(coi: Optional[COI], as_of: datetime) -> Tuple[bool, str]:
    if coi is None:
        return False, REASON_NO_APPROVED

    if coi.effective_date is None or coi.expiration_date is None:
        return False, REASON_MISSING_DATES

    if is_compliant(coi, as_of):
        return True, REASON_VALID

    if is_expired(coi, as_of):
        return False, REASON_EXPIRED

    return False, REASON_NOT_YET_EFFECTIVE


def _decision(coi: Optional[COI], as_of: datetime, **holder) -> AccessDecision:
    eligible, reason = _verdict(coi, as_of)

    if coi is None:
        return AccessDecision(eligible=eligible, reason=reason, **holder)

    return AccessDecision(
        eligible=eligible,
        reason=reason,
        certificate_id=coi.id,
        status=coi.status,
        effective_date=coi.effective_date,
        expiration_date=coi.expiration_date,
        **holder,
    )


# ============================================================
# ON-DEMAND ACCESS CHECK ("apto")
# ============================================================

def check_access(
    session: Session,
    vendor_id: str,
    building_id: str,
    as_of: Optional[datetime] = None,
) -> AccessDecision:
    """
    Decide from the latest-created APPROVED certificate of the vendor
    for the building. Absence is a negative decision, not an error.
    """
    as_of = _as_of(as_of)

    cois = session.exec(
        select(COI)
        .where(COI.vendor_id == vendor_id)
        .where(COI.building_id == building_id)
    ).all()

    return _decision(
        _latest_approved(cois), as_of, vendor_id=vendor_id, building_id=building_id
    )


evaluate_access = check_access


def check_tenant_access(
    session: Session,
    tenant_id: str,
    as_of: Optional[datetime] = None,
) -> AccessDecision:
    as_of = _as_of(as_of)

    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        return AccessDecision(eligible=False, reason=REASON_NO_APPROVED, tenant_id=tenant_id)

    cois = session.exec(
        select(COI)
        .where(COI.tenant_id == tenant_id)
        .where(COI.building_id == tenant.building_id)
    ).all()

    return _decision(
        _latest_approved(cois), as_of, tenant_id=tenant_id, building_id=tenant.building_id
    )


def list_access_by_building(
    session: Session,
    building_id: str,
    as_of: Optional[datetime] = None,
) -> List[VendorAccessRow]:
    """One decision per vendor authorized for the building, any status."""
    as_of = _as_of(as_of)

    rows = session.exec(
        select(Vendor)
        .join(VendorBuildingAuthorization, VendorBuildingAuthorization.vendor_id == Vendor.id)
        .where(VendorBuildingAuthorization.building_id == building_id)
        .order_by(Vendor.company_name)
    ).all()

    cois = session.exec(
        select(COI)
        .where(COI.building_id == building_id)
        .where(COI.vendor_id.is_not(None))
    ).all()

    results = []
    for vendor in rows:
        decision = _decision(
            _latest_approved(c for c in cois if c.vendor_id == vendor.id),
            as_of,
            vendor_id=vendor.id,
            building_id=building_id,
        )
        results.append(VendorAccessRow(**decision.model_dump(), vendor_name=vendor.company_name))

    return results


# ============================================================
# BUILDING AGGREGATE
# ============================================================

def building_summary(
    session: Session,
    building_id: str,
    as_of: Optional[datetime] = None,
) -> BuildingComplianceSummary:
    """
    Counts for one building's dashboard.

    Every read below runs in the caller's session transaction. Whether that
    is a point-in-time snapshot depends on the engine's isolation level:
    with DATABASE_ISOLATION_LEVEL="REPEATABLE READ" (or stricter) the counts
    cannot mix data from before and after a concurrent commit; at the
    Postgres default of READ COMMITTED each SELECT sees its own snapshot.
    """
    as_of = _as_of(as_of)

    building = session.get(Building, building_id)
    if building is None:
        raise NotFoundError("Building", building_id)

    cois = session.exec(select(COI).where(COI.building_id == building_id)).all()
    authorizations = session.exec(
        select(VendorBuildingAuthorization)
        .where(VendorBuildingAuthorization.building_id == building_id)
    ).all()
    tenants = session.exec(select(Tenant).where(Tenant.building_id == building_id)).all()
    guards = session.exec(
        select(GuardBuildingAssignment).where(GuardBuildingAssignment.building_id == building_id)
    ).all()

    valid = [c for c in cois if is_compliant(c, as_of)]

    # Vendor sets are disjoint: valid, then expired-only, then the rest
    approved_vendors = {
        a.vendor_id for a in authorizations if a.status == VendorAuthStatus.APPROVED
    }
    vendors_valid = {c.vendor_id for c in valid if c.vendor_id in approved_vendors}
    vendors_expired = {
        c.vendor_id
        for c in cois
        if c.vendor_id in approved_vendors
        and c.status == COIStatus.APPROVED
        and is_expired(c, as_of)
    } - vendors_valid
    vendors_without = approved_vendors - vendors_valid - vendors_expired

    tenant_ids = {t.id for t in tenants}
    tenants_valid = {c.tenant_id for c in valid if c.tenant_id in tenant_ids}

    approval_dates = [
        c.reviewed_at for c in cois
        if c.status == COIStatus.APPROVED and c.reviewed_at is not None
    ]
    upcoming = [c.expiration_date for c in valid]

    return BuildingComplianceSummary(
        building_id=building.id,
        building_name=building.name,
        as_of=as_of,

        total_cois=len(cois),
        pending_cois=sum(1 for c in cois if c.status == COIStatus.PENDING),
        approved_cois=sum(1 for c in cois if c.status == COIStatus.APPROVED),
        rejected_cois=sum(1 for c in cois if c.status == COIStatus.REJECTED),
        valid_cois=len(valid),
        expired_cois=sum(1 for c in cois if is_expired(c, as_of)),

        pending_authorizations=sum(1 for a in authorizations if a.status == VendorAuthStatus.PENDING),
        approved_authorizations=sum(1 for a in authorizations if a.status == VendorAuthStatus.APPROVED),
        rejected_authorizations=sum(1 for a in authorizations if a.status == VendorAuthStatus.REJECTED),

        total_vendors=len(approved_vendors),
        vendors_with_valid_coi=len(vendors_valid),
        vendors_with_expired_coi=len(vendors_expired),
        vendors_without_coi=len(vendors_without),

        total_tenants=len(tenants),
        tenants_with_valid_coi=len(tenants_valid),
        total_guards=len(guards),

        last_coi_approval_date=max(approval_dates) if approval_dates else None,
        next_coi_expiration_date=min(upcoming) if upcoming else None,
    )


building_compliance_summary = building_summary


# ============================================================
# PER-PARTY ROLLUPS
# ============================================================

def _latest_valid_expiration(cois: Iterable[COI], as_of: datetime) -> Optional[datetime]:
    dates = [c.expiration_date for c in cois if is_compliant(c, as_of)]
    return max(dates) if dates else None


def building_vendors(
    session: Session,
    building_id: str,
    as_of: Optional[datetime] = None,
) -> List[BuildingVendorRow]:
    as_of = _as_of(as_of)

    pairs = session.exec(
        select(Vendor, VendorBuildingAuthorization)
        .join(VendorBuildingAuthorization, VendorBuildingAuthorization.vendor_id == Vendor.id)
        .where(VendorBuildingAuthorization.building_id == building_id)
        .order_by(Vendor.company_name)
    ).all()

    cois = session.exec(
        select(COI)
        .where(COI.building_id == building_id)
        .where(COI.vendor_id.is_not(None))
    ).all()

    rows = []
    for vendor, authorization in pairs:
        expiration = _latest_valid_expiration(
            (c for c in cois if c.vendor_id == vendor.id), as_of
        )
        rows.append(BuildingVendorRow(
            id=vendor.id,
            company_name=vendor.company_name,
            contact_name=vendor.contact_name,
            contact_phone=vendor.contact_phone,
            contact_email=vendor.contact_email,
            authorization_status=authorization.status,
            approved_at=authorization.approved_at,
            has_valid_coi=expiration is not None,
            coi_expiration_date=expiration,
        ))

    return rows


def building_tenants(
    session: Session,
    building_id: str,
    as_of: Optional[datetime] = None,
) -> List[BuildingTenantRow]:
    as_of = _as_of(as_of)

    tenants = session.exec(
        select(Tenant)
        .where(Tenant.building_id == building_id)
        .order_by(Tenant.business_name)
    ).all()

    cois = session.exec(
        select(COI)
        .where(COI.building_id == building_id)
        .where(COI.tenant_id.is_not(None))
    ).all()

    rows = []
    for tenant in tenants:
        expiration = _latest_valid_expiration(
            (c for c in cois if c.tenant_id == tenant.id), as_of
        )
        rows.append(BuildingTenantRow(
            id=tenant.id,
            business_name=tenant.business_name,
            contact_name=tenant.contact_name,
            unit_number=tenant.unit_number,
            contact_phone=tenant.contact_phone,
            contact_email=tenant.contact_email,
            has_valid_coi=expiration is not None,
            coi_expiration_date=expiration,
        ))

    return rows


def vendor_summary(
    session: Session,
    vendor_id: str,
    as_of: Optional[datetime] = None,
) -> VendorComplianceSummary:
    """Cross-building rollup. Compliance rate is active certificates per approved building."""
    as_of = _as_of(as_of)

    vendor = session.get(Vendor, vendor_id)
    if vendor is None:
        raise NotFoundError("Vendor", vendor_id)

    authorizations = session.exec(
        select(VendorBuildingAuthorization).where(VendorBuildingAuthorization.vendor_id == vendor_id)
    ).all()
    cois = session.exec(select(COI).where(COI.vendor_id == vendor_id)).all()

    approved_buildings = sum(1 for a in authorizations if a.status == VendorAuthStatus.APPROVED)
    active = [c for c in cois if is_compliant(c, as_of)]

    rate = round(len(active) / approved_buildings * 100) if approved_buildings else 0
    upcoming = [c.expiration_date for c in active]

    return VendorComplianceSummary(
        vendor_id=vendor.id,
        vendor_name=vendor.company_name,
        total_buildings=len(authorizations),
        approved_buildings=approved_buildings,
        total_cois=len(cois),
        active_cois=len(active),
        expired_cois=sum(1 for c in cois if is_expired(c, as_of)),
        pending_cois=sum(1 for c in cois if c.status == COIStatus.PENDING),
        compliance_rate=rate,
        last_coi_upload_date=max((c.created_at for c in cois), default=None),
        next_coi_expiration_date=min(upcoming) if upcoming else None,
        service_type=vendor.service_type,
    )


def tenant_summary(
    session: Session,
    tenant_id: str,
    as_of: Optional[datetime] = None,
) -> TenantComplianceSummary:
    as_of = _as_of(as_of)

    if session.get(Tenant, tenant_id) is None:
        raise NotFoundError("Tenant", tenant_id)

    cois = session.exec(select(COI).where(COI.tenant_id == tenant_id)).all()

    return TenantComplianceSummary(
        tenant_id=tenant_id,
        total_cois=len(cois),
        active_cois=sum(1 for c in cois if is_compliant(c, as_of)),
        expired_cois=sum(1 for c in cois if is_expired(c, as_of)),
        pending_cois=sum(1 for c in cois if c.status == COIStatus.PENDING),
    )
