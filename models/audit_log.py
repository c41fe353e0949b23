# models/audit_log.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import Column, DateTime, JSON
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow


class AuditLog(SQLModel, table=True):
    """Append-only. Rows are never updated or deleted."""

    __tablename__ = "audit_logs"

    id: str = Field(default_factory=new_id, primary_key=True)
    entity_type: str = Field(index=True)
    entity_id: str = Field(index=True)
    action: str = Field(index=True)
    actor_id: str = Field(default="system", index=True)
    # Owning organization of the subject; reporting is scoped by it
    organization_id: Optional[str] = Field(default=None, index=True)
    # `metadata` is reserved on declarative classes
    details: Optional[dict] = Field(default=None, sa_column=Column("metadata", JSON))
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)


class AuditEntry(BaseModel):
    """Input shape for callers recording a decision."""

    entity_type: str
    entity_id: str
    action: str
    actor_id: Optional[str] = None
    organization_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class AuditLogPage(BaseModel):
    items: List[AuditLog]
    page: int
    limit: int
    total: int
    has_next: bool


class AuditLogFilters(BaseModel):
    """Reporting query. `to_date` is exclusive."""

    organization_id: Optional[str] = None
    entity: Optional[str] = None
    entity_id: Optional[str] = None
    actor_id: Optional[str] = None
    action: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: int = 1
    limit: int = 25
    sort: str = "desc"
