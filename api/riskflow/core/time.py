"""Central time utilities for the application.

Timestamps are stored in naive DateTime columns (TIMESTAMP WITHOUT TIME
ZONE) holding UTC values.
"""
from datetime import datetime, date, time, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return current UTC time as a naive datetime object.

    Replaces datetime.utcnow() without mixing offset-aware values into the
    naive columns.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime | date]) -> Optional[datetime]:
    """Normalize a client-supplied date or datetime to a naive UTC datetime.

    Plain dates are interpreted as midnight UTC.
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
