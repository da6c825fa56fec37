"""Map a shift's start/end time onto the day / night / both boards."""

from __future__ import annotations

from .time_utils import parse_hhmm_to_minutes

DAY_SHIFT_END = 18 * 60
NIGHT_SHIFT_START = 15 * 60
NIGHT_SHIFT_END_MIN = 22 * 60
BOTH_SHIFT_END_MIN = 18 * 60 + 1
BOTH_SHIFT_END_MAX = 22 * 60

_LABELS = {
    "day": "Day Shift",
    "night": "Night Shift",
    "both": "Both Shifts",
}


def classify_shift(start_time: str, end_time: str) -> str:
    """Classify a shift as ``day``, ``night`` or ``both``.

    Times are ``HH:MM`` (seconds are ignored). An end at or before the start
    is an overnight shift. The thresholds are business policy and are applied
    in this exact order; anything not caught by the first four rules is a
    day shift.
    """
    start = parse_hhmm_to_minutes(start_time)
    end = parse_hhmm_to_minutes(end_time)
    is_overnight = end <= start

    if end <= DAY_SHIFT_END and not is_overnight:
        return "day"
    if start > NIGHT_SHIFT_START and (end > NIGHT_SHIFT_END_MIN or is_overnight):
        return "night"
    if start < NIGHT_SHIFT_START and BOTH_SHIFT_END_MIN <= end <= BOTH_SHIFT_END_MAX:
        return "both"
    if start > NIGHT_SHIFT_START and end <= BOTH_SHIFT_END_MAX and not is_overnight:
        return "night"
    return "day"


def format_shift_type(shift_type: str) -> str:
    return _LABELS.get(shift_type, shift_type)


def deployment_slots(shift_type: str) -> list[str]:
    """Boards a classified shift is deployed onto; ``both`` covers day and night."""
    if shift_type == "both":
        return ["day", "night"]
    return [shift_type]
