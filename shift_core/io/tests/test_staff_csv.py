"""Tests for staff CSV import."""

from pathlib import Path

import pytest

from shift_core.errors import ValidationError
from shift_core.io.staff_csv import (
    parse_staff_csv,
    read_staff_csv,
    staff_csv_template,
    validate_staff_records,
)
from shift_core.models import StaffRecord

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestParseStaffCsv:
    def test_fixture_records(self):
        result = read_staff_csv(FIXTURES_DIR / "staff.csv")
        assert [(r.name, r.is_under_18) for r in result.records] == [
            ("Jane Doe", True),
            ("Tom Baker", False),
            ("Amy Li", True),
            ("Pat Jones", False),
        ]

    def test_fixture_row_errors(self):
        result = read_staff_csv(FIXTURES_DIR / "staff.csv")
        assert result.error_messages == [
            "Row 5: Name is required",
            "Row 6: is_under_18 must be true/false, yes/no, or 1/0",
        ]
        assert [e.row for e in result.errors] == [5, 6]
        assert all(isinstance(e, ValidationError) for e in result.errors)

    def test_under_18_column_optional(self):
        result = parse_staff_csv("name\nJane Doe\nTom Baker\n")
        assert [r.is_under_18 for r in result.records] == [False, False]

    def test_missing_name_column(self):
        with pytest.raises(ValidationError, match="Missing required columns: name"):
            parse_staff_csv("full_name,is_under_18\nJane Doe,true\n")

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            parse_staff_csv("name,is_under_18\n")
        with pytest.raises(ValidationError):
            parse_staff_csv("")

    def test_template_parses_cleanly(self):
        result = parse_staff_csv(staff_csv_template())
        assert len(result.records) == 3
        assert result.errors == []


class TestValidateStaffRecords:
    def test_split(self):
        records = [
            StaffRecord(None, "Jane Doe"),
            StaffRecord(None, "Tom Baker"),
            StaffRecord(None, "amy li"),
            StaffRecord(None, "Amy Li"),
        ]
        result = validate_staff_records(records, existing_names=["JANE DOE"])
        assert [r.name for r in result["duplicates"]] == ["Jane Doe"]
        assert [r.name for r in result["valid"]] == ["Tom Baker"]
        assert result["errors"] == ["Duplicate names in CSV: amy li"]

    def test_empty(self):
        assert validate_staff_records([]) == {"valid": [], "duplicates": [], "errors": []}
