"""Tests for linking schedule names to staff records."""

from datetime import date

from shift_core.models import EmployeeSchedule, ScheduleDocument, StaffRecord, TimeRange
from shift_core.reconcile import link_schedule_to_staff, match_staff, staff_summary

STAFF = [
    StaffRecord(id=1, name="Jane Doe-Smith", is_under_18=False),
    StaffRecord(id=2, name="Jane Doe", is_under_18=True),
    StaffRecord(id=3, name="Tom Baker", is_under_18=False),
]


def _document(*names):
    employees = tuple(
        EmployeeSchedule(name=n, role="Cook", schedule={"Monday": TimeRange("9:00a", "5:00p")}) for n in names
    )
    return ScheduleDocument("KFC Wrexham", "1234", date(2025, 1, 6), date(2025, 1, 12), employees)


class TestMatchStaff:
    def test_exact_beats_substring(self):
        # "Jane Doe" is a substring of the first record but matches the second exactly
        assert match_staff("Jane Doe", STAFF).id == 2

    def test_exact_is_trimmed_and_case_insensitive(self):
        assert match_staff("  tom BAKER ", STAFF).id == 3

    def test_substring_either_direction(self):
        assert match_staff("Tom", STAFF).id == 3
        assert match_staff("Tom Baker Jr", STAFF).id == 3

    def test_no_match(self):
        assert match_staff("Amy Li", STAFF) is None

    def test_blank_name(self):
        assert match_staff("   ", STAFF) is None


class TestLinkSchedule:
    def test_stats(self):
        result = link_schedule_to_staff(_document("Jane Doe", "Tom Baker", "Amy Li"), STAFF)
        assert result.stats == {"total": 3, "matched": 2, "unmatched": 1, "match_rate": 66.7}

    def test_linked_metadata(self):
        result = link_schedule_to_staff(_document("Jane Doe", "Amy Li"), STAFF)
        jane, amy = result.employees
        assert (jane.staff_id, jane.matched, jane.is_under_18) == (2, True, True)
        assert (amy.staff_id, amy.matched, amy.is_under_18) == (None, False, False)

    def test_accepts_staff_dicts(self):
        result = link_schedule_to_staff(_document("Tom Baker"), [{"id": "s-3", "name": "Tom Baker"}])
        assert result.employees[0].staff_id == "s-3"

    def test_empty_roster_rate_is_zero(self):
        result = link_schedule_to_staff(_document(), STAFF)
        assert result.stats["match_rate"] == 0
        assert result.stats["total"] == 0

    def test_to_dict_keeps_schedule(self):
        result = link_schedule_to_staff(_document("Tom Baker"), STAFF)
        row = result.employees[0].to_dict()
        assert row["name"] == "Tom Baker"
        assert row["schedule"]["Monday"] == {"start_time": "9:00a", "end_time": "5:00p"}


class TestStaffSummary:
    def test_counts(self):
        assert staff_summary(STAFF) == {"total": 3, "under_18": 1, "over_18": 2}
