# models/compliance.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from models.enums import COIStatus, VendorAuthStatus


# -------------------------------------------------
# On-demand verdict ("apto")
# -------------------------------------------------
class AccessDecision(BaseModel):
    eligible: bool
    reason: str
    certificate_id: Optional[str] = None
    status: Optional[COIStatus] = None
    effective_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    vendor_id: Optional[str] = None
    tenant_id: Optional[str] = None
    building_id: Optional[str] = None


class VendorAccessRow(AccessDecision):
    vendor_name: Optional[str] = None


# -------------------------------------------------
# Building aggregate (computed per call, never cached)
# -------------------------------------------------
class BuildingComplianceSummary(BaseModel):
    building_id: str
    building_name: str
    as_of: datetime

    total_cois: int = 0
    pending_cois: int = 0
    approved_cois: int = 0
    rejected_cois: int = 0
    valid_cois: int = 0
    expired_cois: int = 0

    pending_authorizations: int = 0
    approved_authorizations: int = 0
    rejected_authorizations: int = 0

    total_vendors: int = 0
    vendors_with_valid_coi: int = 0
    vendors_with_expired_coi: int = 0
    vendors_without_coi: int = 0

    total_tenants: int = 0
    tenants_with_valid_coi: int = 0
    total_guards: int = 0

    last_coi_approval_date: Optional[datetime] = None
    next_coi_expiration_date: Optional[datetime] = None


# -------------------------------------------------
# Per-party rollups
# -------------------------------------------------
class BuildingVendorRow(BaseModel):
    id: str
    company_name: str
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    authorization_status: VendorAuthStatus
    approved_at: Optional[datetime] = None
    has_valid_coi: bool
    coi_expiration_date: Optional[datetime] = None


class BuildingTenantRow(BaseModel):
    id: str
    business_name: str
    contact_name: Optional[str] = None
    unit_number: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    has_valid_coi: bool
    coi_expiration_date: Optional[datetime] = None


class VendorComplianceSummary(BaseModel):
    vendor_id: str
    vendor_name: str
    total_buildings: int
    approved_buildings: int
    total_cois: int
    active_cois: int
    expired_cois: int
    pending_cois: int
    compliance_rate: int
    last_coi_upload_date: Optional[datetime] = None
    next_coi_expiration_date: Optional[datetime] = None
    service_type: Optional[str] = None


class TenantComplianceSummary(BaseModel):
    tenant_id: str
    total_cois: int
    active_cois: int
    expired_cois: int
    pending_cois: int


# -------------------------------------------------
# Expiry sweep outcome
# -------------------------------------------------
class SweepResult(BaseModel):
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
