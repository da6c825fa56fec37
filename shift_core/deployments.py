"""Turn a parsed schedule into per-day deployment rows."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from .classifier import classify_shift
from .errors import ParseError
from .models import DAY_NAMES, SHIFT_TYPES, DeploymentRecord, ScheduleDocument
from .time_utils import calc_shift_hours, date_for_day, to_military


def build_deployment_records(document: ScheduleDocument) -> list[DeploymentRecord]:
    """One DeploymentRecord per (employee, day) that has a time range.

    A malformed time token raises FormatError and aborts the whole document.
    """
    if document.week_start is None:
        raise ParseError("Schedule has no week start date; cannot date its shifts")

    records: list[DeploymentRecord] = []
    for employee in document.employees:
        for day in DAY_NAMES:
            time_range = employee.schedule.get(day)
            if time_range is None:
                continue
            start = to_military(time_range.start_time)
            end = to_military(time_range.end_time)
            records.append(
                DeploymentRecord(
                    employee_name=employee.name,
                    role=employee.role,
                    date=date_for_day(document.week_start, day),
                    start_time=start,
                    end_time=end,
                    shift_type=classify_shift(start, end),
                    is_overnight=end <= start,
                )
            )
    return records


def summarize_deployments(records: Iterable[DeploymentRecord]) -> dict[str, Any]:
    rows = list(records)
    by_type = Counter(r.shift_type for r in rows)
    return {
        "total_employees": len({r.employee_name for r in rows}),
        "total_shifts": len(rows),
        "total_hours": round(sum(calc_shift_hours(r.start_time, r.end_time) for r in rows), 2),
        "by_shift_type": {kind: by_type.get(kind, 0) for kind in SHIFT_TYPES},
    }
