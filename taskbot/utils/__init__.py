"""Utility modules for the task bot."""

from .datetime_utils import (
    get_local_tz,
    get_local_now,
    to_naive_local,
    to_local_iso,
    parse_timestamp,
    hours_until,
)

from .date_parser import (
    resolve,
    is_past,
    format_for_display,
    resolve_quick_code,
    quick_options,
)

__all__ = [
    # Datetime utilities
    "get_local_tz",
    "get_local_now",
    "to_naive_local",
    "to_local_iso",
    "parse_timestamp",
    "hours_until",
    # Deadline phrases
    "resolve",
    "is_past",
    "format_for_display",
    "resolve_quick_code",
    "quick_options",
]
