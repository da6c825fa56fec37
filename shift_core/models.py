"""Schedule, deployment and staff records passed between pipeline stages."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

SHIFT_TYPES = ("day", "night", "both")


@dataclass(frozen=True)
class TimeRange:
    start_time: str
    end_time: str

    def to_dict(self) -> dict[str, str]:
        return {"start_time": self.start_time, "end_time": self.end_time}


@dataclass(frozen=True)
class EmployeeSchedule:
    name: str
    role: str
    schedule: Mapping[str, TimeRange] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schedule", MappingProxyType(dict(self.schedule)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "schedule": {day: tr.to_dict() for day, tr in self.schedule.items()},
        }


@dataclass(frozen=True)
class ScheduleDocument:
    """Result of one parse. Never mutated after the parser returns it."""

    location: str
    location_code: str
    week_start: date | None
    week_end: date | None
    employees: tuple[EmployeeSchedule, ...] = ()

    @property
    def shift_count(self) -> int:
        return sum(len(e.schedule) for e in self.employees)

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "location_code": self.location_code,
            "week_start": self.week_start.isoformat() if self.week_start else None,
            "week_end": self.week_end.isoformat() if self.week_end else None,
            "employees": [e.to_dict() for e in self.employees],
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ScheduleDocument":
        employees = []
        for emp in payload.get("employees", []):
            schedule = {
                day: TimeRange(tr["start_time"], tr["end_time"])
                for day, tr in (emp.get("schedule") or {}).items()
            }
            employees.append(EmployeeSchedule(emp["name"], emp.get("role", ""), schedule))
        week_start = payload.get("week_start")
        week_end = payload.get("week_end")
        return cls(
            location=payload.get("location", ""),
            location_code=payload.get("location_code", ""),
            week_start=date.fromisoformat(week_start) if week_start else None,
            week_end=date.fromisoformat(week_end) if week_end else None,
            employees=tuple(employees),
        )


@dataclass(frozen=True)
class DeploymentRecord:
    employee_name: str
    role: str
    date: str
    start_time: str
    end_time: str
    shift_type: str
    is_overnight: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_name": self.employee_name,
            "role": self.role,
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "shift_type": self.shift_type,
            "is_overnight": self.is_overnight,
        }


@dataclass(frozen=True)
class StaffRecord:
    id: Any
    name: str
    is_under_18: bool = False

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "StaffRecord":
        return cls(id=row.get("id"), name=str(row.get("name") or ""), is_under_18=bool(row.get("is_under_18")))
