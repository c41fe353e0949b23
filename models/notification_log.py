# models/notification_log.py

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field

from core.utils import new_id, utcnow
from models.enums import NotificationType


class NotificationLog(SQLModel, table=True):
    """
    Append-only record of delivered notifications.

    `subject` is a synthetic idempotency key; the unique constraint on
    (type, recipient, subject) is what makes check-then-insert atomic
    when two sweeps overlap.
    """

    __tablename__ = "notification_logs"
    __table_args__ = (
        UniqueConstraint("type", "recipient", "subject", name="uq_notification_idempotency"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    type: NotificationType = Field(index=True)
    recipient: str = Field(index=True)
    subject: str = Field(index=True)
    content: Optional[str] = None
    status: str = "sent"
    sent_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
