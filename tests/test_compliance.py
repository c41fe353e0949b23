# tests/test_compliance.py

"""
Tests for the compliance predicate, access decisions and rollups.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core import compliance
from core.compliance import (
    building_summary,
    building_tenants,
    building_vendors,
    check_access,
    check_tenant_access,
    is_compliant,
    is_expired,
    list_access_by_building,
    tenant_summary,
    vendor_summary,
)
from core.errors import NotFoundError
from models import COI
from models.enums import COIStatus, Role, VendorAuthStatus


START = datetime(2024, 1, 1)
END = datetime(2024, 12, 31)


def certificate(status=COIStatus.APPROVED, effective=START, expiration=END):
    return COI(
        building_id="b",
        vendor_id="v",
        status=status,
        effective_date=effective,
        expiration_date=expiration,
    )


# ============================================================
# Predicate
# ============================================================
def test_inside_window_is_compliant():
    assert is_compliant(certificate(), datetime(2024, 6, 1))


def test_before_effective_and_after_expiration():
    assert not is_compliant(certificate(), datetime(2023, 12, 31, 23, 59))
    assert not is_compliant(certificate(), datetime(2025, 1, 15))


def test_bounds_follow_inclusive_rule():
    coi = certificate()
    assert is_compliant(coi, START)
    assert is_compliant(coi, END) is compliance.EXPIRATION_IS_INCLUSIVE
    assert is_expired(coi, END) is not compliance.EXPIRATION_IS_INCLUSIVE
    assert is_expired(coi, END + timedelta(microseconds=1))


def test_exclusive_rule_flips_only_the_bound(monkeypatch):
    monkeypatch.setattr(compliance, "EXPIRATION_IS_INCLUSIVE", False)
    coi = certificate()
    assert not is_compliant(coi, END)
    assert is_expired(coi, END)
    assert is_compliant(coi, END - timedelta(seconds=1))


@pytest.mark.parametrize("status", [COIStatus.PENDING, COIStatus.REJECTED])
@pytest.mark.parametrize(
    "as_of", [datetime(2023, 6, 1), START, datetime(2024, 6, 1), END, datetime(2025, 6, 1)]
)
def test_non_approved_never_compliant(status, as_of):
    assert not is_compliant(certificate(status=status), as_of)


def test_missing_dates_never_compliant():
    assert not is_compliant(certificate(effective=None), datetime(2024, 6, 1))
    assert not is_compliant(certificate(expiration=None), datetime(2024, 6, 1))
    assert not is_expired(certificate(expiration=None), datetime(2030, 1, 1))


def test_expired_is_independent_of_status():
    assert is_expired(certificate(status=COIStatus.REJECTED), datetime(2025, 1, 1))


def test_aware_as_of_is_converted_to_utc():
    # 00:30 on 2024-01-01 at UTC+5 is still 2023-12-31 in UTC
    as_of = datetime(2024, 1, 1, 0, 30, tzinfo=timezone(timedelta(hours=5)))
    assert not is_compliant(certificate(), as_of)
    assert is_compliant(certificate(), as_of.replace(tzinfo=None))


# ============================================================
# Access decision
# ============================================================
@pytest.fixture
def site(factory):
    org = factory.organization()
    building = factory.building(org, "Harbor Tower")
    vendor = factory.vendor(company_name="Sparky Electric")
    factory.authorize(vendor, building)
    return factory, building, vendor


def test_decision_valid_then_expired(site):
    factory, building, vendor = site
    coi = factory.coi(building, vendor=vendor)

    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert decision.eligible
    assert decision.reason == "valid"
    assert decision.certificate_id == coi.id
    assert decision.status == COIStatus.APPROVED

    later = check_access(factory.session, vendor.id, building.id, datetime(2025, 1, 15))
    assert not later.eligible
    assert later.reason == "expired"
    assert later.expiration_date == END


def test_only_rejected_means_no_approved_certificate(site):
    factory, building, vendor = site
    factory.coi(building, vendor=vendor, status=COIStatus.REJECTED)

    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert not decision.eligible
    assert decision.reason == "no approved certificate"
    assert decision.certificate_id is None


def test_no_certificate_at_all(site):
    factory, building, vendor = site
    decision = check_access(factory.session, vendor.id, building.id)
    assert decision.reason == "no approved certificate"
    assert decision.vendor_id == vendor.id
    assert decision.building_id == building.id


def test_not_yet_effective(site):
    factory, building, vendor = site
    factory.coi(building, vendor=vendor, effective_date=datetime(2024, 7, 1))
    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert decision.reason == "not yet effective"


def test_missing_coverage_dates(site):
    factory, building, vendor = site
    factory.coi(building, vendor=vendor, expiration_date=None)
    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert decision.reason == "missing coverage dates"


def test_latest_created_approved_certificate_wins(site):
    factory, building, vendor = site
    factory.coi(
        building, vendor=vendor,
        expiration_date=datetime(2025, 12, 31),
        created_at=datetime(2024, 1, 1),
    )
    newest = factory.coi(
        building, vendor=vendor,
        expiration_date=datetime(2024, 3, 1),
        created_at=datetime(2024, 2, 1),
    )
    # A newer PENDING upload never displaces an approved one
    factory.coi(building, vendor=vendor, status=COIStatus.PENDING, created_at=datetime(2024, 5, 1))

    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert decision.certificate_id == newest.id
    assert decision.reason == "expired"


def test_other_building_certificate_does_not_count(site):
    factory, building, vendor = site
    other = factory.building(factory.organization("Other"))
    factory.coi(other, vendor=vendor)

    decision = check_access(factory.session, vendor.id, building.id, datetime(2024, 6, 1))
    assert decision.reason == "no approved certificate"


def test_tenant_access(factory):
    org = factory.organization()
    building = factory.building(org)
    tenant = factory.tenant(building)
    factory.coi(building, tenant=tenant)

    decision = check_tenant_access(factory.session, tenant.id, datetime(2024, 6, 1))
    assert decision.eligible
    assert decision.tenant_id == tenant.id
    assert decision.building_id == building.id

    assert check_tenant_access(factory.session, "ghost").reason == "no approved certificate"


def test_list_access_by_building_covers_every_authorization(site):
    factory, building, vendor = site
    factory.coi(building, vendor=vendor)
    pending = factory.vendor(company_name="Acme Plumbing")
    factory.authorize(pending, building, VendorAuthStatus.PENDING)

    rows = list_access_by_building(factory.session, building.id, datetime(2024, 6, 1))
    assert [(r.vendor_name, r.eligible) for r in rows] == [
        ("Acme Plumbing", False),
        ("Sparky Electric", True),
    ]


# ============================================================
# Building aggregate
# ============================================================
def test_building_summary_counts(factory):
    as_of = datetime(2024, 6, 1)
    org = factory.organization()
    building = factory.building(org, "Harbor Tower")

    valid_vendor = factory.vendor()
    expired_vendor = factory.vendor()
    bare_vendor = factory.vendor()
    pending_vendor = factory.vendor()
    for v in (valid_vendor, expired_vendor, bare_vendor):
        factory.authorize(v, building)
    factory.authorize(pending_vendor, building, VendorAuthStatus.PENDING)

    factory.coi(building, vendor=valid_vendor, reviewed_at=datetime(2024, 1, 5))
    # Expired approval next to a valid one: counts as valid only
    factory.coi(building, vendor=valid_vendor, expiration_date=datetime(2024, 3, 1))
    factory.coi(
        building, vendor=expired_vendor,
        expiration_date=datetime(2024, 5, 1),
        reviewed_at=datetime(2024, 2, 1),
    )
    factory.coi(building, vendor=bare_vendor, status=COIStatus.PENDING)
    factory.coi(building, vendor=pending_vendor, status=COIStatus.REJECTED, expiration_date=datetime(2024, 2, 1))

    tenant_ok = factory.tenant(building)
    factory.tenant(building)
    factory.coi(building, tenant=tenant_ok, expiration_date=datetime(2024, 9, 30))

    factory.assign(factory.guard(factory.user(Role.GUARD, org)), building)

    summary = building_summary(factory.session, building.id, as_of)

    assert summary.building_name == "Harbor Tower"
    assert summary.as_of == as_of
    assert summary.total_cois == 6
    assert summary.pending_cois == 1
    assert summary.approved_cois == 4
    assert summary.rejected_cois == 1
    assert summary.valid_cois == 2
    assert summary.expired_cois == 3

    assert summary.approved_authorizations == 3
    assert summary.pending_authorizations == 1
    assert summary.rejected_authorizations == 0

    assert summary.total_vendors == 3
    assert summary.vendors_with_valid_coi == 1
    assert summary.vendors_with_expired_coi == 1
    assert summary.vendors_without_coi == 1
    assert (
        summary.vendors_with_valid_coi
        + summary.vendors_with_expired_coi
        + summary.vendors_without_coi
        == summary.total_vendors
    )

    assert summary.total_tenants == 2
    assert summary.tenants_with_valid_coi == 1
    assert summary.total_guards == 1

    assert summary.last_coi_approval_date == datetime(2024, 2, 1)
    assert summary.next_coi_expiration_date == datetime(2024, 9, 30)


def test_empty_building_summary(factory):
    building = factory.building(factory.organization())
    summary = building_summary(factory.session, building.id)
    assert summary.total_cois == 0
    assert summary.last_coi_approval_date is None
    assert summary.next_coi_expiration_date is None


def test_missing_building_raises(session):
    with pytest.raises(NotFoundError):
        building_summary(session, "nope")


# ============================================================
# Per-party rollups
# ============================================================
def test_building_vendor_and_tenant_rows(site):
    factory, building, vendor = site
    factory.coi(building, vendor=vendor)
    tenant = factory.tenant(building, business_name="Cafe Luna")

    as_of = datetime(2024, 6, 1)
    vendors = building_vendors(factory.session, building.id, as_of)
    assert len(vendors) == 1
    assert vendors[0].has_valid_coi
    assert vendors[0].coi_expiration_date == END
    assert vendors[0].authorization_status == VendorAuthStatus.APPROVED

    tenants = building_tenants(factory.session, building.id, as_of)
    assert tenants[0].id == tenant.id
    assert not tenants[0].has_valid_coi


def test_vendor_summary_rate(factory):
    org = factory.organization()
    b1, b2 = factory.building(org), factory.building(org)
    vendor = factory.vendor(service_type="HVAC")
    factory.authorize(vendor, b1)
    factory.authorize(vendor, b2)
    factory.coi(b1, vendor=vendor)
    factory.coi(b2, vendor=vendor, expiration_date=datetime(2024, 3, 1))
    factory.coi(b2, vendor=vendor, status=COIStatus.PENDING)

    summary = vendor_summary(factory.session, vendor.id, datetime(2024, 6, 1))
    assert summary.total_buildings == 2
    assert summary.approved_buildings == 2
    assert summary.total_cois == 3
    assert summary.active_cois == 1
    assert summary.expired_cois == 1
    assert summary.pending_cois == 1
    assert summary.compliance_rate == 50
    assert summary.next_coi_expiration_date == END
    assert summary.service_type == "HVAC"


def test_vendor_summary_without_approvals_has_zero_rate(factory):
    vendor = factory.vendor()
    assert vendor_summary(factory.session, vendor.id).compliance_rate == 0

    with pytest.raises(NotFoundError):
        vendor_summary(factory.session, "ghost")


def test_tenant_summary(factory):
    building = factory.building(factory.organization())
    tenant = factory.tenant(building)
    factory.coi(building, tenant=tenant)
    factory.coi(building, tenant=tenant, status=COIStatus.PENDING)

    summary = tenant_summary(factory.session, tenant.id, datetime(2024, 6, 1))
    assert (summary.total_cois, summary.active_cois, summary.pending_cois) == (2, 1, 1)
