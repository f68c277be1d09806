"""
Natural-language deadline resolution.

Turns Russian deadline phrases and quick-pick button codes into absolute
timestamps (ISO-8601 strings with the local offset), checks them against
the current time and formats them for display.

Resolution order:
1. Exact phrase table ("сегодня", "завтра", "через 3 часа", ...)
2. "сегодня в H:MM" / "завтра в H:MM"
3. dateparser search over Russian and English, preferring future dates
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Union

from dateparser.search import search_dates

from config import settings
from .datetime_utils import get_local_now, parse_timestamp, to_local_iso

logger = logging.getLogger(__name__)

TODAY_AT = re.compile(r"^сегодня в (\d{1,2}):(\d{2})$")
TOMORROW_AT = re.compile(r"^завтра в (\d{1,2}):(\d{2})$")
QUICK_CODE = re.compile(r"^deadline:(today|tomorrow):(\d{1,2}):(\d{2})$")
RELATIVE_CODE = re.compile(r"^deadline:relative:(\d+)([hd])$")

FALLBACK_LANGUAGES = ["ru", "en"]

NOT_SET_PLACEHOLDER = "Не указан"
INVALID_PLACEHOLDER = "Неверная дата"

WEEKDAYS = [
    "понедельник", "вторник", "среда", "четверг",
    "пятница", "суббота", "воскресенье",
]
MONTHS_GENITIVE = [
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
]


@dataclass(frozen=True)
class QuickOption:
    """A precomputed deadline choice for quick-pick buttons."""
    label: str
    value: str
    code: str


def _at(day: datetime, hour: int, minute: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _plus_hours(now: datetime, hours: int) -> datetime:
    return (now + timedelta(hours=hours)).replace(second=0, microsecond=0)


def _phrase_table() -> Dict[str, Callable[[datetime], datetime]]:
    hour = settings.default_deadline_hour
    return {
        "сегодня": lambda now: _at(now, hour),
        "завтра": lambda now: _at(now + timedelta(days=1), hour),
        "через час": lambda now: _plus_hours(now, 1),
        "через 2 часа": lambda now: _plus_hours(now, 2),
        "через 3 часа": lambda now: _plus_hours(now, 3),
        "через день": lambda now: _at(now + timedelta(days=1), hour),
        "через неделю": lambda now: _at(now + timedelta(days=7), hour),
    }


def _search_fallback(text: str, now: datetime) -> Optional[datetime]:
    found = search_dates(
        text,
        languages=FALLBACK_LANGUAGES,
        settings={
            "PREFER_DATES_FROM": "future",
            "RELATIVE_BASE": now,
            "RETURN_AS_TIMEZONE_AWARE": False,
        },
    )
    if not found:
        return None
    # First recognized span wins
    return found[0][1]


def resolve(text: Optional[str], now: Optional[datetime] = None) -> Optional[str]:
    """
    Resolve a deadline phrase into an ISO timestamp.

    Args:
        text: Free-text deadline ("завтра", "сегодня в 15:30", "в пятницу")
        now: Naive local "now" (defaults to the current local time)

    Returns:
        ISO-8601 string with the local offset, or None if nothing matched.
        Past moments are returned as-is; use is_past() to reject them.
    """
    if not isinstance(text, str):
        return None

    normalized = text.strip().lower()
    if not normalized:
        return None

    now = now or get_local_now()

    exact = _phrase_table().get(normalized)
    if exact:
        return to_local_iso(exact(now))

    for pattern, day in ((TODAY_AT, now), (TOMORROW_AT, now + timedelta(days=1))):
        match = pattern.match(normalized)
        if match:
            try:
                return to_local_iso(_at(day, int(match.group(1)), int(match.group(2))))
            except ValueError:
                return None

    try:
        found = _search_fallback(normalized, now)
    except Exception as e:
        logger.warning(f"Date grammar failed on {normalized!r}: {e}")
        return None

    return to_local_iso(found.replace(microsecond=0)) if found else None


def is_past(value: Union[str, datetime, None], now: Optional[datetime] = None) -> bool:
    """True if the timestamp is before now. Unparseable input is never past."""
    moment = parse_timestamp(value)
    if moment is None:
        return False
    return moment < (now or get_local_now())


def format_for_display(value: Union[str, datetime, None]) -> str:
    """Long Russian rendering, e.g. 'суббота, 17 октября 2026 г., 18:00'."""
    if not value:
        return NOT_SET_PLACEHOLDER

    moment = parse_timestamp(value)
    if moment is None:
        return INVALID_PLACEHOLDER

    return (
        f"{WEEKDAYS[moment.weekday()]}, {moment.day} "
        f"{MONTHS_GENITIVE[moment.month - 1]} {moment.year} г., "
        f"{moment:%H:%M}"
    )


def resolve_quick_code(code: str, now: Optional[datetime] = None) -> Optional[str]:
    """
    Recompute a quick-pick deadline from its button code.

    Codes: deadline:today:HH:MM, deadline:tomorrow:HH:MM,
    deadline:relative:<N>h (now + N hours), deadline:relative:<N>d
    (N days ahead at the default deadline hour).
    """
    now = now or get_local_now()

    match = QUICK_CODE.match(code or "")
    if match:
        day = now if match.group(1) == "today" else now + timedelta(days=1)
        try:
            return to_local_iso(_at(day, int(match.group(2)), int(match.group(3))))
        except ValueError:
            return None

    match = RELATIVE_CODE.match(code or "")
    if match:
        amount = int(match.group(1))
        if match.group(2) == "h":
            return to_local_iso(_plus_hours(now, amount))
        return to_local_iso(_at(now + timedelta(days=amount), settings.default_deadline_hour))

    return None


QUICK_CHOICES = [
    ("Сегодня 18:00", "deadline:today:18:00"),
    ("Сегодня 21:00", "deadline:today:21:00"),
    ("Завтра 12:00", "deadline:tomorrow:12:00"),
    ("Завтра 18:00", "deadline:tomorrow:18:00"),
    ("Через 3 часа", "deadline:relative:3h"),
    ("Через день", "deadline:relative:1d"),
]


def quick_options(now: Optional[datetime] = None) -> List[QuickOption]:
    """The six quick-pick deadlines, computed against the same now."""
    now = now or get_local_now()
    return [
        QuickOption(label=label, value=resolve_quick_code(code, now), code=code)
        for label, code in QUICK_CHOICES
    ]
