"""Time and date normalization shared by the parser, classifier and exports."""

from __future__ import annotations

import re
from datetime import date, timedelta

from .errors import FormatError
from .models import DAY_NAMES

_TWELVE_HOUR = re.compile(r"(\d{1,2}):(\d{2})\s*([ap])m?", re.IGNORECASE)

_DAY_OFFSETS = {name: index for index, name in enumerate(DAY_NAMES)}


def parse_hhmm_to_minutes(value: str | None) -> int | None:
    """Parse HH:MM (or HH:MM:SS) into minutes after midnight."""
    if not value or ":" not in str(value):
        return None
    try:
        parts = str(value).split(":")
        h = int(parts[0])
        m = int(parts[1])
    except (TypeError, ValueError, IndexError):
        return None
    if h < 0 or h > 23 or m < 0 or m > 59:
        return None
    return h * 60 + m


def to_military(token: str) -> str:
    """Convert a 12-hour schedule token such as ``6:30p`` to ``18:30:00``.

    ``12:xxa`` is just after midnight and ``12:xxp`` is just after noon.
    """
    match = _TWELVE_HOUR.fullmatch(str(token or "").strip())
    if not match:
        raise FormatError(f"Invalid time token: {token!r}")
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if not 1 <= hours <= 12 or minutes > 59:
        raise FormatError(f"Time out of range: {token!r}")

    period = match.group(3).lower()
    if period == "a" and hours == 12:
        hours = 0
    elif period == "p" and hours != 12:
        hours += 12
    return f"{hours:02d}:{minutes:02d}:00"


def date_for_day(week_start: date, day_name: str) -> str:
    """Return the ISO date of ``day_name`` in the week starting on ``week_start``."""
    key = str(day_name or "").strip().capitalize()
    if key not in _DAY_OFFSETS:
        raise FormatError(f"Unknown day name: {day_name!r}")
    return (week_start + timedelta(days=_DAY_OFFSETS[key])).isoformat()


def calc_shift_hours(start: str | None, end: str | None) -> float:
    """Calculate duration for a shift in decimal hours."""
    s = parse_hhmm_to_minutes(start)
    e = parse_hhmm_to_minutes(end)
    if s is None or e is None:
        return 0.0
    diff = e - s
    if diff < 0:
        diff += 24 * 60
    return diff / 60.0


def break_minutes(work_hours: float, *, is_under_18: bool = False) -> int:
    """Statutory break for a shift of ``work_hours``."""
    if is_under_18:
        return 30 if work_hours >= 4.5 else 0
    if work_hours >= 6:
        return 30
    if work_hours >= 4.5:
        return 15
    return 0
