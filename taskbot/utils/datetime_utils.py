"""
Centralized datetime and timezone utilities.

Deadlines are kept as naive datetimes in the configured local timezone
(database storage, comparisons, formatting) and exchanged as ISO-8601
strings carrying the local UTC offset.
"""

import math
from datetime import datetime
from typing import Optional, Union
import pytz

from config import settings


def get_local_tz() -> pytz.BaseTzInfo:
    """Get the configured local timezone."""
    return pytz.timezone(settings.timezone)


def get_local_now() -> datetime:
    """Get current time in local timezone (naive)."""
    local_tz = get_local_tz()
    return datetime.now(local_tz).replace(tzinfo=None)


def to_naive_local(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive local time for database storage.

    Args:
        dt: Datetime to convert (can be aware or naive)

    Returns:
        Naive datetime in local timezone, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        local_dt = dt.astimezone(get_local_tz())
        return local_dt.replace(tzinfo=None)

    # Already naive, assume it's in local time
    return dt


def to_local_iso(dt: datetime) -> str:
    """Render a naive local datetime as ISO-8601 with the local offset."""
    if dt.tzinfo is None:
        dt = get_local_tz().localize(dt)
    return dt.isoformat()


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored or resolved timestamp into a naive local datetime.

    Accepts datetimes and ISO strings (with or without offset, 'Z' suffix
    allowed). Returns None for empty or malformed input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_naive_local(value)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        return to_naive_local(datetime.fromisoformat(text))
    except ValueError:
        return None


def hours_until(deadline: datetime, now: Optional[datetime] = None) -> float:
    """Hours remaining until deadline (negative if overdue)."""
    now = now or get_local_now()
    return (deadline - now).total_seconds() / 3600


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))
