# core/audit.py

from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.errors import PersistenceError
from core.logging_config import logger
from core.utils import to_naive_utc, utcnow
from models import AuditEntry, AuditLog, AuditLogFilters, AuditLogPage


SYSTEM_ACTOR = "system"
MAX_PAGE_SIZE = 100


# -----------------------------------------------------
# Writing
#
# Audit is best-effort: a failed write is logged and the
# caller's operation goes on as if nothing happened.
# -----------------------------------------------------
def record_audit(
    session: Session,
    entity_type: str,
    entity_id: str,
    action: str,
    actor_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    organization_id: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Append one audit row inside the caller's transaction.

    The row is written in a SAVEPOINT, so a failure rolls back only the
    audit insert and leaves the caller's own changes pending.
    """
    row = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=str(action),
        actor_id=actor_id or SYSTEM_ACTOR,
        organization_id=organization_id,
        details=metadata,
        created_at=utcnow(),
    )

    try:
        with session.begin_nested():
            session.add(row)
    except SQLAlchemyError as e:
        logger.warning(f"Audit write failed for {entity_type} {entity_id} ({action}): {e}")
        return None

    return row


def record_audit_entry(entry: AuditEntry) -> Optional[AuditLog]:
    """Standalone form: opens its own session and commits."""
    # Imported here so the engine is only built when this path is used
    from database import session_scope

    try:
        with session_scope() as session:
            row = record_audit(
                session,
                entry.entity_type,
                entry.entity_id,
                entry.action,
                actor_id=entry.actor_id,
                metadata=entry.metadata,
                organization_id=entry.organization_id,
            )
    except PersistenceError as e:
        logger.warning(f"Audit write failed for {entry.entity_type} {entry.entity_id} ({entry.action}): {e}")
        return None

    return row


# -----------------------------------------------------
# Reporting
# -----------------------------------------------------
def _apply_filters(statement, filters: AuditLogFilters):
    if filters.organization_id:
        statement = statement.where(AuditLog.organization_id == filters.organization_id)
    if filters.entity:
        statement = statement.where(AuditLog.entity_type == filters.entity)
    if filters.entity_id:
        statement = statement.where(AuditLog.entity_id == filters.entity_id)
    if filters.actor_id:
        statement = statement.where(AuditLog.actor_id == filters.actor_id)
    if filters.action:
        statement = statement.where(AuditLog.action == filters.action)
    if filters.from_date:
        statement = statement.where(AuditLog.created_at >= to_naive_utc(filters.from_date))
    if filters.to_date:
        statement = statement.where(AuditLog.created_at < to_naive_utc(filters.to_date))
    return statement


def list_audit_logs(session: Session, filters: Optional[AuditLogFilters] = None) -> AuditLogPage:
    filters = filters or AuditLogFilters()

    page = max(1, filters.page)
    limit = min(MAX_PAGE_SIZE, max(1, filters.limit))
    order = AuditLog.created_at.asc() if filters.sort == "asc" else AuditLog.created_at.desc()

    total = session.exec(_apply_filters(select(func.count()).select_from(AuditLog), filters)).one()
    items = session.exec(
        _apply_filters(select(AuditLog), filters)
        .order_by(order, AuditLog.id)
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return AuditLogPage(
        items=list(items),
        page=page,
        limit=limit,
        total=total,
        has_next=page * limit < total,
    )
