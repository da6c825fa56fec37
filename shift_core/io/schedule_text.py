"""Parse text extracted from a weekly staffing-schedule PDF.

The text is scanned once, line by line. Each line is tested against the
recognised line kinds in precedence order:

  1. location header   -- ``KFC Wrexham 1234's schedule for ...``
  2. week date range   -- first line carrying two dates
  3. day header        -- ``Mon 6 Tue 7 Wed 8 ...`` (captured once); when
                          it dates each day (``Mon 6 of October ...``) it
                          also seeds the week range from its first and last
                          dates
  4. role section      -- ``Cook Deployment``
  5. column header     -- ``Name Mon Tue Wed ...`` (skipped)
  6. employee row      -- ``Jane Doe 9:00a 5:00p 4:00p 11:30p ...``

Anything else (titles, page footers, notes) is ignored. Progress is reported
to an optional observer instead of being printed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol

from ..errors import ParseError
from ..models import DAY_NAMES, EmployeeSchedule, ScheduleDocument, TimeRange

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Line patterns
# ---------------------------------------------------------------------------

_LOCATION = re.compile(
    r"^(?P<name>.+?)\s+(?P<code>\d+)\s*['’]s\s+schedule\s+for\b",
    re.IGNORECASE,
)

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DATE = re.compile(
    r"(?:(?P<day>\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?"
    r"(?P<month>jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\b"
    r"(?:,?\s+(?P<year>\d{4}))?)"
    r"|(?:(?P<nday>\d{1,2})/(?P<nmonth>\d{1,2})/(?P<nyear>\d{2,4}))",
    re.IGNORECASE,
)

_DAY_ABBREVIATIONS = {
    "mon": "Monday", "tue": "Tuesday", "wed": "Wednesday", "thu": "Thursday",
    "fri": "Friday", "sat": "Saturday", "sun": "Sunday",
}

_DAY_NUMBER = re.compile(
    r"\b(?P<day>mon(?:day)?|tue(?:s(?:day)?)?|wed(?:nesday)?|thu(?:r(?:s(?:day)?)?)?|"
    r"fri(?:day)?|sat(?:urday)?|sun(?:day)?)\.?,?\s+(?P<num>\d{1,2})(?:st|nd|rd|th)?(?![\d:])",
    re.IGNORECASE,
)

_SECTION = re.compile(r"^(?P<role>[A-Za-z][A-Za-z &/-]*?)\s+Deployment\b", re.IGNORECASE)

_COLUMN_WORDS = frozenset({
    "name", "names", "employee", "employees", "staff", "role", "position",
    "shift", "shifts", "total", "hours", "hrs",
    *_DAY_ABBREVIATIONS,
    *(d.lower() for d in DAY_NAMES),
})

# A slot is either a 12h time token ("9:00a", "9:00 pm") or a "--" day-off marker.
_SLOT = re.compile(
    r"(?P<time>(?<![\d:])\d{1,2}:\d{2})\s?(?P<period>[ap])m?(?![a-z])"
    r"|(?P<off>(?<!\S)--(?!\S))",
    re.IGNORECASE,
)

_NAME_STRIP = " \t-–|:,"


# ---------------------------------------------------------------------------
# Observer
# ---------------------------------------------------------------------------


class ParseObserver(Protocol):
    def notify(self, event: str, **details: Any) -> None: ...


class LoggingObserver:
    """Default observer: forwards parser checkpoints to the module logger."""

    def notify(self, event: str, **details: Any) -> None:
        logger.debug("schedule parse: %s %s", event, details)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


@dataclass
class ParserState:
    """Fold state threaded through the line scan.

    ``current_section`` is ``None`` while seeking the first role header;
    employee rows are only accepted once it is set.
    """

    current_section: str | None = None
    day_order: tuple[str, ...] = DAY_NAMES
    found_day_header: bool = False
    day_numbers: dict[str, int] = field(default_factory=dict)
    location: str = ""
    location_code: str = ""
    week_start: date | None = None
    week_end: date | None = None
    employees: list[EmployeeSchedule] = field(default_factory=list)


class ScheduleTextParser:
    def __init__(self, observer: ParseObserver | None = None, *, reference: date | None = None):
        self.observer = observer or LoggingObserver()
        self.reference = reference

    def parse(self, text: str) -> ScheduleDocument:
        state = ParserState()
        for raw in str(text or "").splitlines():
            line = raw.strip()
            if line:
                self._consume(state, line)
        return self._finish(state)

    # -- line handling ------------------------------------------------------

    def _consume(self, state: ParserState, line: str) -> None:
        day_header = _is_day_header(line)
        if self._header_metadata(state, line, span=day_header) and not day_header:
            return

        if day_header:
            if not state.found_day_header:
                self._capture_day_header(state, line)
            return

        section = _SECTION.match(line)
        if section and not _SLOT.search(line):
            state.current_section = section.group("role").strip()
            self.observer.notify("section_found", section=state.current_section)
            return

        if _is_column_header(line):
            return

        if state.current_section is not None:
            self._employee_row(state, line)

    def _header_metadata(self, state: ParserState, line: str, *, span: bool = False) -> bool:
        """Location and week range; both may sit on the same title line.

        With ``span`` the range runs from the first to the last date on the
        line, for day headers that date every column.
        """
        matched = False

        loc = _LOCATION.match(line)
        if loc and not state.location:
            state.location = loc.group("name").strip()
            state.location_code = loc.group("code")
            self.observer.notify("location_found", location=state.location, code=state.location_code)
            matched = True

        if state.week_start is None:
            week = self._week_range(line, span=span)
            if week is not None:
                state.week_start, state.week_end = week
                self.observer.notify(
                    "week_range_found",
                    week_start=state.week_start.isoformat(),
                    week_end=state.week_end.isoformat(),
                )
                matched = True

        return matched

    def _week_range(self, line: str, *, span: bool = False) -> tuple[date, date] | None:
        found = list(_DATE.finditer(line))
        if len(found) < 2:
            return None
        first, second = _date_parts(found[0]), _date_parts(found[-1] if span else found[1])
        fallback_year = (self.reference or date.today()).year

        start_day, start_month, start_year = first
        end_day, end_month, end_year = second
        if start_year is None and end_year is None:
            start_year = fallback_year
            end_year = fallback_year + 1 if end_month < start_month else fallback_year
        elif start_year is None:
            start_year = end_year - 1 if start_month > end_month else end_year
        elif end_year is None:
            end_year = start_year + 1 if end_month < start_month else start_year

        try:
            return date(start_year, start_month, start_day), date(end_year, end_month, end_day)
        except ValueError:
            return None

    def _capture_day_header(self, state: ParserState, line: str) -> None:
        order: list[str] = []
        for m in _DAY_NUMBER.finditer(line):
            day = _DAY_ABBREVIATIONS[m.group("day")[:3].lower()]
            if day in state.day_numbers:
                continue
            state.day_numbers[day] = int(m.group("num"))
            order.append(day)
        state.day_order = tuple(order[:7])
        state.found_day_header = True
        self.observer.notify("day_header_found", day_order=list(state.day_order))

    def _employee_row(self, state: ParserState, line: str) -> None:
        slots = list(_SLOT.finditer(line))
        times = [m for m in slots if m.group("time")]
        if len(times) < 2:
            return

        name = line[: slots[0].start()].strip(_NAME_STRIP)
        reason = _reject_name(name)
        if reason:
            self.observer.notify("employee_rejected", line=line, reason=reason)
            return

        schedule: dict[str, TimeRange] = {}
        pending: str | None = None
        index = 0
        for m in slots:
            if index >= len(state.day_order):
                break
            if m.group("off"):
                pending = None
                index += 1
                continue
            token = f"{m.group('time')}{m.group('period').lower()}"
            if pending is None:
                pending = token
                continue
            schedule[state.day_order[index]] = TimeRange(pending, token)
            pending = None
            index += 1

        employee = EmployeeSchedule(name=name, role=state.current_section or "", schedule=schedule)
        state.employees.append(employee)
        self.observer.notify("employee_added", name=name, role=employee.role, shifts=len(schedule))

    # -- finalisation -------------------------------------------------------

    def _finish(self, state: ParserState) -> ScheduleDocument:
        if not state.employees:
            raise ParseError("No schedule data found in text")

        week_start = state.week_start
        monday = state.day_numbers.get("Monday")
        if week_start is not None and monday is not None and week_start.day != monday:
            try:
                corrected = week_start.replace(day=monday)
            except ValueError:
                corrected = week_start
            if corrected != week_start:
                self.observer.notify(
                    "week_start_corrected",
                    detected=week_start.isoformat(),
                    corrected=corrected.isoformat(),
                )
                week_start = corrected

        return ScheduleDocument(
            location=state.location,
            location_code=state.location_code,
            week_start=week_start,
            week_end=state.week_end,
            employees=tuple(state.employees),
        )


def parse_schedule_text(
    text: str,
    *,
    observer: ParseObserver | None = None,
    reference: date | None = None,
) -> ScheduleDocument:
    """Parse schedule text into a ScheduleDocument.

    ``reference`` supplies the year when the document's dates omit it
    (defaults to today). Raises ParseError when no employee row is found.
    """
    return ScheduleTextParser(observer, reference=reference).parse(text)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _date_parts(m: re.Match) -> tuple[int, int, int | None]:
    if m.group("day"):
        year = m.group("year")
        return int(m.group("day")), _MONTHS[m.group("month")[:3].lower()], int(year) if year else None
    year = int(m.group("nyear"))
    if year < 100:
        year += 2000
    return int(m.group("nday")), int(m.group("nmonth")), year


def _is_day_header(line: str) -> bool:
    return len(_DAY_NUMBER.findall(line)) >= 2 and not _SLOT.search(line)


def _is_column_header(line: str) -> bool:
    if any(ch.isdigit() for ch in line):
        return False
    words = re.findall(r"[A-Za-z]+", line)
    return bool(words) and all(w.lower() in _COLUMN_WORDS for w in words)


def _reject_name(name: str) -> str | None:
    if len(name) <= 2:
        return "name_too_short"
    if "of " in name:
        return "date_fragment"
    if name[0].isdigit():
        return "starts_with_digit"
    return None
