# core/utils.py

import uuid
from datetime import date, datetime, time, timezone
from typing import Optional


def utcnow() -> datetime:
    """
    Current time as a naive UTC datetime.
    All timestamps are stored naive-UTC so they compare cleanly on every backend;
    table columns are declared `sa_type=DateTime` (no timezone) to match.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a caller-supplied datetime:
    - None stays None
    - aware datetimes are converted to UTC and stripped
    - naive datetimes are assumed to be UTC already
    - plain dates become midnight of that day
    """
    if value is None:
        return None

    if not isinstance(value, datetime) and isinstance(value, date):
        return datetime.combine(value, time.min)

    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)

    return value


def start_of_day(value: datetime) -> datetime:
    """Midnight of the given datetime's calendar day."""
    return datetime.combine(value.date(), time.min)


def whole_days_until(target: datetime, reference: datetime) -> int:
    """
    Whole calendar days from `reference` to `target`.
    Both sides are normalized to midnight first, so anything later today is 0.
    """
    return (target.date() - reference.date()).days


def new_id() -> str:
    """String UUID primary key."""
    return str(uuid.uuid4())
