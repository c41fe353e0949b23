# models/tenant.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow


class Tenant(SQLModel, table=True):
    """Commercial tenant of exactly one building."""

    __tablename__ = "tenants"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: Optional[str] = Field(default=None, foreign_key="users.id", unique=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)

    business_name: str
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    unit_number: Optional[str] = None
    lease_start_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    lease_end_date: Optional[datetime] = Field(default=None, sa_type=DateTime)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
