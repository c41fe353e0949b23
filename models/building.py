# models/building.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow


# -------------------------------------------------
# Building
# -------------------------------------------------
class Building(SQLModel, table=True):
    __tablename__ = "buildings"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None

    organization_id: str = Field(foreign_key="organizations.id", index=True)
    # External BUILDING_OWNER user, if any
    owner_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)

    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


# -------------------------------------------------
# Explicit manager grant (portfolio / property managers)
# -------------------------------------------------
class UserBuildingAccess(SQLModel, table=True):
    __tablename__ = "user_building_access"
    __table_args__ = (UniqueConstraint("user_id", "building_id", name="uq_user_building_access"),)

    id: str = Field(default_factory=new_id, primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    building_id: str = Field(foreign_key="buildings.id", index=True)
    assigned_by: Optional[str] = None
    assigned_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)


# -------------------------------------------------
# Create (API payload)
# -------------------------------------------------
class BuildingCreate(BaseModel):
    name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
