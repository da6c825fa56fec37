"""Column constants and value coercion for CSV I/O."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input CSV column names
# ---------------------------------------------------------------------------

STAFF_COLS = [
    "name",
    "is_under_18",
]

REQUIRED_STAFF_COLS = ["name"]

# ---------------------------------------------------------------------------
# Output CSV column names
# ---------------------------------------------------------------------------

DEPLOYMENT_COLS = [
    "employee_name",
    "role",
    "date",
    "day",
    "shift_type",
    "start_time",
    "end_time",
    "hours",
    "is_overnight",
]

# Day and per-shift-type sheets in the XLSX report
REPORT_ROW_COLS = [
    "Employee Name",
    "Role",
    "Shift Type",
    "Date",
    "Start Time",
    "End Time",
]

# ---------------------------------------------------------------------------
# Type coercion helpers for reading CSV values
# ---------------------------------------------------------------------------

_TRUE_TOKENS = ("true", "1", "yes")
_FALSE_TOKENS = ("false", "0", "no", "")


def to_bool_strict(value: str | None) -> bool | None:
    """Coerce a CSV boolean token. Unrecognised tokens -> None.

    Accepts true/1/yes and false/0/no/empty, case-insensitively.
    """
    if value is None:
        return False
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    return None


def fmt_bool(value: bool) -> str:
    """Format a bool for CSV output."""
    return "TRUE" if value else "FALSE"


def fmt_time(value: str | None) -> str:
    """``18:30:00`` -> ``18:30``; empty stays empty."""
    if not value:
        return ""
    return ":".join(str(value).split(":")[:2])
