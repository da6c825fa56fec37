"""Link schedule names to staff records.

Names on the schedule PDF rarely match the staff table exactly ("Jane D" vs
"Jane Doe"), so an exact, case-insensitive match is tried first and then the
first staff record whose name contains, or is contained in, the schedule
name. The substring fallback can pick the wrong person when names overlap;
that precision trade-off is accepted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .models import EmployeeSchedule, ScheduleDocument, StaffRecord


@dataclass(frozen=True)
class LinkedEmployee:
    employee: EmployeeSchedule
    staff_id: Any = None
    matched: bool = False
    is_under_18: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.employee.to_dict(),
            "staff_id": self.staff_id,
            "matched": self.matched,
            "is_under_18": self.is_under_18,
        }


@dataclass(frozen=True)
class LinkResult:
    employees: list[LinkedEmployee] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)


def _as_records(staff: Iterable[StaffRecord | Mapping[str, Any]]) -> list[StaffRecord]:
    return [s if isinstance(s, StaffRecord) else StaffRecord.from_dict(dict(s)) for s in staff]


def match_staff(name: str, staff: Sequence[StaffRecord]) -> StaffRecord | None:
    """Staff record for a schedule name, or None."""
    target = str(name or "").strip().lower()
    if not target:
        return None

    for record in staff:
        if record.name.strip().lower() == target:
            return record

    for record in staff:
        candidate = record.name.strip().lower()
        if candidate and (candidate in target or target in candidate):
            return record
    return None


def link_schedule_to_staff(
    document: ScheduleDocument,
    staff: Iterable[StaffRecord | Mapping[str, Any]],
) -> LinkResult:
    records = _as_records(staff)
    linked: list[LinkedEmployee] = []
    for employee in document.employees:
        hit = match_staff(employee.name, records)
        if hit is None:
            linked.append(LinkedEmployee(employee))
        else:
            linked.append(LinkedEmployee(employee, staff_id=hit.id, matched=True, is_under_18=hit.is_under_18))

    total = len(linked)
    matched = sum(1 for e in linked if e.matched)
    stats = {
        "total": total,
        "matched": matched,
        "unmatched": total - matched,
        "match_rate": round(matched / total * 100, 1) if total else 0,
    }
    return LinkResult(employees=linked, stats=stats)


def staff_summary(staff: Iterable[StaffRecord | Mapping[str, Any]]) -> dict[str, int]:
    records = _as_records(staff)
    under = sum(1 for r in records if r.is_under_18)
    return {"total": len(records), "under_18": under, "over_18": len(records) - under}
