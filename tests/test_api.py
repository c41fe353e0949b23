# tests/test_api.py

"""
End-to-end tests of the HTTP surface: authentication is overridden
per test with `login`, rows come from `factory`.
"""

from datetime import datetime
from unittest.mock import patch

import pytest
from fastapi import FastAPI

from models.enums import COIStatus, Role
from routers import api_router
from routers.admin import get_notification_sender


AS_OF = "2024-06-01T09:00:00"


@pytest.fixture
def site(factory):
    """One organization with two buildings and a manager granted only the first."""
    org = factory.organization()
    b1 = factory.building(org, "Harbor Tower")
    b2 = factory.building(org, "Palm Court")
    owner = factory.user(Role.ACCOUNT_OWNER, org)
    pm = factory.user(Role.PROPERTY_MANAGER, org)
    factory.grant(pm, b1)
    return factory, org, b1, b2, owner, pm


# ============================================================
# Health
# ============================================================
def test_health_endpoints(client):
    assert client.get("/health/app").json()["status"] == "ok"
    assert client.get("/health/db").json()["status"] == "ok"


def test_api_router_mounts_every_route(app):
    embedded = FastAPI()
    embedded.include_router(api_router)

    paths = set(embedded.openapi()["paths"])
    assert {"/access/check", "/buildings/{building_id}/compliance", "/admin/expiry-sweep", "/audit"} <= paths
    assert paths <= set(app.openapi()["paths"])


def test_missing_token_is_rejected(client):
    response = client.get("/buildings")
    assert response.status_code in (401, 403)


# ============================================================
# Permissions
# ============================================================
def test_permissions_me_lists_role_capabilities(client, login, site):
    _, _, _, _, _, pm = site
    login(pm)

    body = client.get("/permissions/me").json()

    assert body["role"] == "PROPERTY_MANAGER"
    assert "cois:manage" in body["capabilities"]
    assert "buildings:create" not in body["capabilities"]


def test_permissions_check_uses_building_grants(client, login, site):
    _, _, b1, b2, _, pm = site
    login(pm)

    granted = client.get("/permissions/check", params={
        "action": "buildings:read", "resource_kind": "building", "resource_id": b1.id,
    }).json()
    other = client.get("/permissions/check", params={
        "action": "buildings:read", "resource_kind": "building", "resource_id": b2.id,
    }).json()
    capability_only = client.get("/permissions/check", params={"action": "buildings:delete"}).json()

    assert granted["allowed"] is True
    assert granted["resource"] == {"kind": "building", "id": b1.id}
    assert other["allowed"] is False
    assert capability_only["allowed"] is False


def test_permissions_check_requires_kind_and_id_together(client, login, site):
    _, _, b1, _, _, pm = site
    login(pm)

    response = client.get("/permissions/check", params={"action": "buildings:read", "resource_id": b1.id})
    assert response.status_code == 400


# ============================================================
# Buildings
# ============================================================
def test_list_buildings_by_role(client, login, site):
    factory, _, b1, b2, owner, pm = site
    factory.building(factory.organization("Elsewhere"), "Not Ours")

    login(owner)
    assert [b["name"] for b in client.get("/buildings").json()] == ["Harbor Tower", "Palm Court"]

    login(pm)
    assert [b["id"] for b in client.get("/buildings").json()] == [b1.id]


def test_create_building_requires_capability(client, login, site):
    factory, org, _, _, _, pm = site

    login(pm)
    assert client.post("/buildings", json={"name": "Nope"}).status_code == 403

    portfolio = factory.user(Role.PORTFOLIO_MANAGER, org)
    login(portfolio)
    response = client.post("/buildings", json={"name": "Bayview", "city": "Honolulu"})
    assert response.status_code == 201

    # The creator can see what they made
    assert [b["name"] for b in client.get("/buildings").json()] == ["Bayview"]


def test_delete_building_with_certificates_is_refused(client, login, site):
    factory, _, b1, _, owner, _ = site
    factory.coi(b1, vendor=factory.vendor())
    login(owner)

    response = client.delete(f"/buildings/{b1.id}")
    assert response.status_code == 400


def test_delete_empty_building(client, login, site):
    _, _, _, b2, owner, pm = site

    login(pm)
    assert client.delete(f"/buildings/{b2.id}").status_code == 403

    login(owner)
    assert client.delete(f"/buildings/{b2.id}").status_code == 204
    assert [b["name"] for b in client.get("/buildings").json()] == ["Harbor Tower"]


def test_assign_manager_needs_user_management(client, login, site):
    factory, org, _, b2, owner, pm = site
    other_pm = factory.user(Role.PROPERTY_MANAGER, org)

    # Property managers cannot assign managers
    login(pm)
    assert client.post(f"/buildings/{b2.id}/managers/{other_pm.id}").status_code == 403

    login(owner)
    response = client.post(f"/buildings/{b2.id}/managers/{other_pm.id}")
    assert response.status_code == 200
    assert response.json()["assigned_by"] == owner.id

    login(other_pm)
    assert [b["id"] for b in client.get("/buildings").json()] == [b2.id]


def test_unknown_building_is_forbidden(client, login, site):
    _, _, _, _, owner, _ = site
    login(owner)

    assert client.get("/buildings/ghost/compliance").status_code == 403


# ============================================================
# Vendors
# ============================================================
def test_approve_and_reject_vendor(client, login, site):
    factory, _, b1, b2, _, pm = site
    vendor = factory.vendor()
    login(pm)

    assert client.post(f"/buildings/{b2.id}/vendors/{vendor.id}/approve").status_code == 403

    approved = client.post(f"/buildings/{b1.id}/vendors/{vendor.id}/approve").json()
    assert approved["status"] == "APPROVED"

    rejected = client.post(
        f"/buildings/{b1.id}/vendors/{vendor.id}/reject", json={"notes": "No license"}
    ).json()
    assert rejected["status"] == "REJECTED"
    assert rejected["notes"] == "No license"
    assert rejected["approved_by"] is None


# ============================================================
# Access checks
# ============================================================
def test_guard_access_check(client, login, site):
    factory, org, b1, b2, _, _ = site
    vendor = factory.vendor()
    factory.authorize(vendor, b1)
    factory.coi(b1, vendor=vendor)

    guard_user = factory.user(Role.GUARD, org)
    factory.assign(factory.guard(guard_user), b1)
    login(guard_user)

    inside = client.get("/access/check", params={
        "vendor_id": vendor.id, "building_id": b1.id, "as_of": AS_OF,
    })
    assert inside.status_code == 200
    assert inside.json()["eligible"] is True
    assert inside.json()["reason"] == "valid"

    after = client.get("/access/check", params={
        "vendor_id": vendor.id, "building_id": b1.id, "as_of": "2025-01-02T00:00:00",
    }).json()
    assert after["eligible"] is False
    assert after["reason"] == "expired"

    # Not assigned to the second building
    outside = client.get("/access/check", params={"vendor_id": vendor.id, "building_id": b2.id})
    assert outside.status_code == 403


def test_vendor_cannot_run_access_checks(client, login, site):
    factory, _, b1, _, _, _ = site
    vendor_user = factory.user(Role.VENDOR)
    vendor = factory.vendor(user=vendor_user)
    factory.authorize(vendor, b1)
    login(vendor_user)

    response = client.get("/access/check", params={"vendor_id": vendor.id, "building_id": b1.id})
    assert response.status_code == 403


def test_access_list_for_building(client, login, site):
    factory, _, b1, _, _, pm = site
    good = factory.vendor(company_name="Alpha Plumbing")
    none = factory.vendor(company_name="Beta Roofing")
    factory.authorize(good, b1)
    factory.authorize(none, b1)
    factory.coi(b1, vendor=good)
    login(pm)

    rows = client.get("/access/vendors", params={"building_id": b1.id, "as_of": AS_OF}).json()

    assert [(r["vendor_name"], r["eligible"], r["reason"]) for r in rows] == [
        ("Alpha Plumbing", True, "valid"),
        ("Beta Roofing", False, "no approved certificate"),
    ]


def test_tenant_access_check(client, login, site):
    factory, _, b1, _, _, pm = site
    tenant = factory.tenant(b1)
    factory.coi(b1, tenant=tenant)
    login(pm)

    assert client.get("/access/tenants/ghost").status_code == 404

    decision = client.get(f"/access/tenants/{tenant.id}", params={"as_of": AS_OF}).json()
    assert decision["eligible"] is True
    assert decision["tenant_id"] == tenant.id


# ============================================================
# Certificates
# ============================================================
def test_vendor_uploads_own_certificate_only(client, login, site):
    factory, _, b1, _, _, _ = site
    vendor_user = factory.user(Role.VENDOR)
    mine = factory.vendor(user=vendor_user)
    theirs = factory.vendor()
    login(vendor_user)

    payload = {
        "building_id": b1.id,
        "effective_date": "2024-01-01T00:00:00",
        "expiration_date": "2024-12-31T00:00:00",
    }

    created = client.post("/cois", json={**payload, "vendor_id": mine.id})
    assert created.status_code == 201
    assert created.json()["status"] == "PENDING"

    assert client.post("/cois", json={**payload, "vendor_id": theirs.id}).status_code == 403


def test_guard_sees_status_only(client, login, site):
    factory, org, b1, _, _, _ = site
    coi = factory.coi(b1, vendor=factory.vendor(), insurance_company="Island Mutual")
    guard_user = factory.user(Role.GUARD, org)
    factory.assign(factory.guard(guard_user), b1)
    login(guard_user)

    body = client.get(f"/cois/{coi.id}").json()

    assert set(body) == {"id", "building_id", "status", "effective_date", "expiration_date", "is_valid"}
    assert "insurance_company" not in body


def test_vendor_cannot_read_someone_elses_certificate(client, login, site):
    factory, _, b1, _, _, _ = site
    vendor_user = factory.user(Role.VENDOR)
    factory.vendor(user=vendor_user)
    coi = factory.coi(b1, vendor=factory.vendor())
    login(vendor_user)

    assert client.get(f"/cois/{coi.id}").status_code == 403
    assert client.get("/cois/ghost").status_code == 404


def test_review_certificate(client, login, site):
    factory, _, b1, b2, _, pm = site
    vendor = factory.vendor()
    coi = factory.coi(b1, vendor=vendor, status=COIStatus.PENDING)
    hidden = factory.coi(b2, vendor=vendor, status=COIStatus.PENDING)
    login(pm)

    assert client.post(f"/cois/{hidden.id}/review", json={"status": "APPROVED"}).status_code == 403
    assert client.post(f"/cois/{coi.id}/review", json={"status": "PENDING"}).status_code == 400

    with patch("services.cois.send_coi_rejected_email") as mock_send:
        response = client.post(
            f"/cois/{coi.id}/review",
            json={"status": "REJECTED", "notes": "Wrong insured", "flags": {"additional_insured": False}},
        )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "REJECTED"
    assert body["reviewed_by"] == pm.id
    assert body["additional_insured"] is False
    mock_send.assert_called_once()


# ============================================================
# Reports
# ============================================================
def test_building_compliance_summary(client, login, site):
    factory, _, b1, _, _, pm = site
    valid_vendor = factory.vendor()
    lapsed_vendor = factory.vendor()
    bare_vendor = factory.vendor()
    for vendor in (valid_vendor, lapsed_vendor, bare_vendor):
        factory.authorize(vendor, b1)
    factory.coi(b1, vendor=valid_vendor)
    factory.coi(b1, vendor=lapsed_vendor, expiration_date=datetime(2024, 3, 1))
    factory.coi(b1, vendor=bare_vendor, status=COIStatus.PENDING)
    login(pm)

    body = client.get(f"/buildings/{b1.id}/compliance", params={"as_of": AS_OF}).json()

    assert body["total_cois"] == 3
    assert body["valid_cois"] == 1
    assert body["expired_cois"] == 1
    assert body["pending_cois"] == 1
    assert body["total_vendors"] == 3
    assert body["vendors_with_valid_coi"] == 1
    assert body["vendors_with_expired_coi"] == 1
    assert body["vendors_without_coi"] == 1


def test_vendor_report_visibility(client, login, site):
    factory, _, b1, _, _, pm = site
    vendor = factory.vendor()
    stranger = factory.vendor()
    factory.authorize(vendor, b1)
    factory.coi(b1, vendor=vendor)
    login(pm)

    report = client.get(f"/reports/vendors/{vendor.id}", params={"as_of": AS_OF})
    assert report.status_code == 200
    assert report.json()["compliance_rate"] == 100

    assert client.get(f"/reports/vendors/{stranger.id}").status_code == 403


# ============================================================
# Audit & admin
# ============================================================
def test_audit_trail_is_readable_by_management_only(client, login, site):
    factory, _, b1, _, owner, _ = site
    vendor = factory.vendor()
    login(owner)
    client.post(f"/buildings/{b1.id}/vendors/{vendor.id}/approve")

    page = client.get("/audit", params={"action": "APPROVE_VENDOR"}).json()
    assert page["total"] == 1
    assert page["items"][0]["actor_id"] == owner.id

    login(factory.user(Role.VENDOR))
    assert client.get("/audit").status_code == 403


def test_audit_trail_is_scoped_to_the_callers_organization(client, login, site):
    factory, org, _, _, owner, _ = site
    login(owner)
    assert client.post("/buildings", json={"name": "Secret Tower A"}).status_code == 201

    other = factory.user(Role.PORTFOLIO_MANAGER, factory.organization("Rival Holdings"))
    login(other)
    response = client.get("/audit", params={"action": "CREATE_BUILDING"})

    assert response.status_code == 200
    assert response.json()["total"] == 0
    assert "Secret Tower A" not in response.text

    login(owner)
    page = client.get("/audit", params={"action": "CREATE_BUILDING"}).json()
    assert page["total"] == 1
    assert page["items"][0]["organization_id"] == org.id


def test_audit_trail_needs_an_organization(client, login, factory):
    login(factory.user(Role.ACCOUNT_OWNER))
    assert client.get("/audit").status_code == 403


def test_manual_expiry_sweep(client, app, login, site, sender):
    factory, _, b1, _, owner, pm = site
    vendor = factory.vendor()
    factory.coi(b1, vendor=vendor, expiration_date=datetime(2024, 7, 1, 12, 0))
    app.dependency_overrides[get_notification_sender] = lambda: sender

    login(pm)
    assert client.post("/admin/expiry-sweep", params={"as_of": AS_OF}).status_code == 403

    login(owner)
    first = client.post("/admin/expiry-sweep", params={"as_of": AS_OF}).json()
    again = client.post("/admin/expiry-sweep", params={"as_of": AS_OF}).json()

    assert first == {"processed": 1, "sent": 2, "skipped": 0, "failed": 0}
    assert again == {"processed": 1, "sent": 0, "skipped": 2, "failed": 0}
    assert len(sender.calls) == 2
