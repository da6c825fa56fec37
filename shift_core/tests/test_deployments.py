"""Tests for turning a parsed schedule into deployment rows."""

from datetime import date

import pytest

from shift_core.deployments import build_deployment_records, summarize_deployments
from shift_core.errors import FormatError, ParseError
from shift_core.models import EmployeeSchedule, ScheduleDocument, TimeRange


def _document(schedule, week_start=date(2025, 1, 27)):
    employee = EmployeeSchedule(name="Jane Doe", role="Cook", schedule=schedule)
    return ScheduleDocument("KFC Wrexham", "1234", week_start, None, (employee,))


class TestBuildDeploymentRecords:
    def test_converts_and_classifies(self):
        doc = _document({
            "Sunday": TimeRange("10:00p", "6:00a"),
            "Monday": TimeRange("9:00a", "5:00p"),
        })
        records = build_deployment_records(doc)
        assert [r.date for r in records] == ["2025-01-27", "2025-02-02"]

        monday, sunday = records
        assert (monday.start_time, monday.end_time, monday.shift_type) == ("09:00:00", "17:00:00", "day")
        assert not monday.is_overnight
        assert (sunday.start_time, sunday.end_time, sunday.shift_type) == ("22:00:00", "06:00:00", "night")
        assert sunday.is_overnight
        assert sunday.role == "Cook"

    def test_malformed_token_aborts(self):
        doc = _document({"Monday": TimeRange("9:00a", "17:00")})
        with pytest.raises(FormatError):
            build_deployment_records(doc)

    def test_requires_week_start(self):
        doc = _document({"Monday": TimeRange("9:00a", "5:00p")}, week_start=None)
        with pytest.raises(ParseError):
            build_deployment_records(doc)


class TestSummary:
    def test_counts_and_hours(self):
        doc = _document({
            "Monday": TimeRange("9:00a", "5:00p"),
            "Tuesday": TimeRange("2:00p", "7:00p"),
            "Friday": TimeRange("10:00p", "6:00a"),
        })
        summary = summarize_deployments(build_deployment_records(doc))
        assert summary == {
            "total_employees": 1,
            "total_shifts": 3,
            "total_hours": 21.0,
            "by_shift_type": {"day": 1, "night": 1, "both": 1},
        }

    def test_empty(self):
        summary = summarize_deployments([])
        assert summary["total_shifts"] == 0
        assert summary["by_shift_type"] == {"day": 0, "night": 0, "both": 0}
