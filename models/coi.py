# models/coi.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import CheckConstraint, Column, DateTime, JSON
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow
from models.enums import COIStatus


# ===============================================================
# CERTIFICATE OF INSURANCE
# ===============================================================

class COI(SQLModel, table=True):
    """
    Certificate held by exactly one vendor or one tenant, for one building.

    Created PENDING by upload, ingestion or public token submission.
    Review overwrites the status; "expired" is always derived from
    expiration_date and never stored.
    """

    __tablename__ = "cois"
    __table_args__ = (
        CheckConstraint(
            "(vendor_id IS NULL) <> (tenant_id IS NULL)",
            name="ck_coi_single_holder",
        ),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    vendor_id: Optional[str] = Field(default=None, foreign_key="vendors.id", index=True)
    tenant_id: Optional[str] = Field(default=None, foreign_key="tenants.id", index=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)

    status: COIStatus = Field(default=COIStatus.PENDING, index=True)
    effective_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    expiration_date: Optional[datetime] = Field(default=None, index=True, sa_type=DateTime)

    # Coverage (free-form, as extracted from the certificate)
    insurance_company: Optional[str] = None
    coverage_amounts: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    additional_insured: Optional[bool] = None
    waiver_subrogation: bool = False

    # Review
    review_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)


# -------------------------------------------------
# Review payload
# -------------------------------------------------
class COIReviewFlags(BaseModel):
    additional_insured: Optional[bool] = None
    waiver_of_subrogation: Optional[bool] = None


class COIReview(BaseModel):
    status: COIStatus
    notes: Optional[str] = None
    flags: Optional[COIReviewFlags] = None


# -------------------------------------------------
# Create payload (upload / ingestion)
# -------------------------------------------------
class COICreate(BaseModel):
    building_id: str
    vendor_id: Optional[str] = None
    tenant_id: Optional[str] = None
    effective_date: datetime
    expiration_date: datetime
    insurance_company: Optional[str] = None
    coverage_amounts: Optional[dict] = None
    additional_insured: Optional[bool] = None
    waiver_subrogation: bool = False
