# models/organization.py

from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow


class Organization(SQLModel, table=True):
    """Tenant boundary. Owns buildings and every non-vendor user."""

    __tablename__ = "organizations"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
