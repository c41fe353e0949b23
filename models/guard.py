# models/guard.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow


class Guard(SQLModel, table=True):
    __tablename__ = "guards"

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", unique=True)
    organization_id: str = Field(foreign_key="organizations.id", index=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    employee_id: Optional[str] = None

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


class GuardBuildingAssignment(SQLModel, table=True):
    """Presence of a row is the assignment; there is no status."""

    __tablename__ = "guard_building_assignments"
    __table_args__ = (UniqueConstraint("guard_id", "building_id", name="uq_guard_building"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    guard_id: str = Field(foreign_key="guards.id", index=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)
    assigned_by: Optional[str] = None
    assigned_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
