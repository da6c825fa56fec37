"""Tests for the schedule ingestion pipeline."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from deploy_planner.ingest import (
    ScheduleIngestInput,
    ingest_schedule,
    shift_requirements,
    staff_id_map,
    upload_row,
)
from deploy_planner.storage import load_schedule, save_schedule
from shift_core.errors import FormatError, ParseError

SCHEDULE = (
    Path(__file__).resolve().parents[2] / "shift_core" / "io" / "tests" / "fixtures" / "weekly_schedule.txt"
)

STAFF = [
    {"id": 1, "name": "Jane Doe", "is_under_18": False},
    {"id": 2, "name": "Amy Li", "is_under_18": True},
]


@pytest.fixture
def upload():
    text = SCHEDULE.read_text(encoding="utf-8")
    return ingest_schedule(ScheduleIngestInput(text=text, staff=STAFF))


class TestIngestSchedule:
    def test_summary(self, upload):
        assert upload["summary"]["total_shifts"] == 16
        assert upload["document"]["week_start"] == "2025-01-06"
        assert upload["upload_id"].startswith("sched-2025-01-06-kfc-wrexham-")

    def test_link_stats(self, upload):
        assert upload["link_stats"] == {"total": 3, "matched": 2, "unmatched": 1, "match_rate": 66.7}
        assert staff_id_map(upload) == {"Jane Doe": 1, "Amy Li": 2}

    def test_parse_events_are_kept(self, upload):
        events = [e["event"] for e in upload["parse_events"]]
        assert "employee_rejected" in events

    def test_upload_row(self, upload):
        row = upload_row(upload)
        assert row["location"] == "KFC Wrexham"
        assert row["week_start_date"] == "2025-01-06"
        assert row["raw_data"]["employees"][0]["name"] == "Jane Doe"

    def test_location_fallback(self):
        text = "6th January 2025 - 12th January 2025\nCook Deployment\nJane Doe 9:00a 5:00p\n"
        upload = ingest_schedule(ScheduleIngestInput(text=text, location="Fallback Store"))
        assert upload["document"]["location"] == "Fallback Store"

    def test_round_trip_through_storage(self, upload, tmp_path):
        save_schedule(tmp_path, upload)
        assert load_schedule(tmp_path)["deployments"] == upload["deployments"]

    def test_errors_propagate(self):
        with pytest.raises(ParseError):
            ingest_schedule(ScheduleIngestInput(text="nothing here"))
        with pytest.raises(FormatError):
            ingest_schedule(
                ScheduleIngestInput(
                    text="6th January 2025 - 12th January 2025\nCook Deployment\nJane Doe 13:00p 5:00p\n"
                )
            )

    def test_missing_week_start(self):
        with pytest.raises(ParseError, match="week start"):
            ingest_schedule(ScheduleIngestInput(text="Cook Deployment\nJane Doe 9:00a 5:00p\n"))


class TestShiftRequirements:
    RULES = [
        {
            "rule_name": "Friday night cooks",
            "priority": 10,
            "condition": {"shift_type": "night", "day_of_week": "Friday"},
            "action": {"require_position": "Cook", "count": 2},
        },
        {
            "rule_name": "No runner on DT2 days",
            "priority": 5,
            "condition": {"dt_type": "DT2", "shift_type": "day"},
            "action": {"exclude_position": "Shift Runner"},
        },
    ]

    def test_fourteen_shifts(self):
        result = shift_requirements(self.RULES, date(2025, 1, 6))
        assert len(result) == 14
        assert result[0]["date"] == "2025-01-06"
        assert result[-1]["day_of_week"] == "Sunday"

    def test_rule_applied_on_matching_shift_only(self):
        result = shift_requirements(self.RULES, date(2025, 1, 6))
        friday_night = next(r for r in result if r["day_of_week"] == "Friday" and r["shift_type"] == "night")
        assert friday_night["matched_rules"] == ["Friday night cooks"]
        cook = next(p for p in friday_night["positions"] if p["position"] == "Cook")
        assert cook["min_count"] == 2

        friday_day = next(r for r in result if r["day_of_week"] == "Friday" and r["shift_type"] == "day")
        assert friday_day["matched_rules"] == []

    def test_shift_config_drives_context(self):
        result = shift_requirements(self.RULES, date(2025, 1, 6), shift_config={"dt_type": "DT2"})
        monday_day = result[0]
        assert monday_day["matched_rules"] == ["No runner on DT2 days"]
        assert "Shift Runner" not in [p["position"] for p in monday_day["positions"]]
