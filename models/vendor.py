# models/vendor.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow
from models.enums import VendorAuthStatus


class Vendor(SQLModel, table=True):
    """Cross-organization service provider profile."""

    __tablename__ = "vendors"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", unique=True)

    company_name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    service_type: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class VendorBuildingAuthorization(SQLModel, table=True):
    """
    Per-building approval gate. Independent of certificate validity:
    an APPROVED vendor may still lack a valid COI.
    """

    __tablename__ = "vendor_building_authorizations"
    __table_args__ = (UniqueConstraint("vendor_id", "building_id", name="uq_vendor_building"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    vendor_id: str = Field(foreign_key="vendors.id", index=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)
    status: VendorAuthStatus = Field(default=VendorAuthStatus.PENDING, index=True)

    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
