# models/user.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow
from models.enums import Role


# ===============================================================
# PLATFORM USER
# ===============================================================

class User(SQLModel, table=True):
    """
    Identity plus exactly one role.
    Vendors have no organization; everyone else belongs to one.
    The vendor / tenant / guard profile points back here via a unique user_id.
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(index=True, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    role: Role = Field(index=True)
    organization_id: Optional[str] = Field(default=None, foreign_key="organizations.id", index=True)

    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
