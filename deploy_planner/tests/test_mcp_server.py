"""Tests for the MCP tool functions, called directly."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("mcp")

from deploy_planner import mcp_server  # noqa: E402

SCHEDULE = (
    Path(__file__).resolve().parents[2] / "shift_core" / "io" / "tests" / "fixtures" / "weekly_schedule.txt"
)


@pytest.fixture
def artifacts(tmp_path, monkeypatch):
    monkeypatch.setenv("PLANNER_ARTIFACT_DIR", str(tmp_path))
    monkeypatch.delenv("PLANNER_DEFAULT_LOCATION", raising=False)
    return tmp_path


class TestClassifyTool:
    def test_twelve_hour_tokens(self):
        result = mcp_server.classify_shift("2:00p", "7:00p")
        assert result == {"shift_type": "both", "label": "Both Shifts", "slots": ["day", "night"]}

    def test_twenty_four_hour_tokens(self):
        assert mcp_server.classify_shift("22:00", "06:00")["shift_type"] == "night"


class TestRuleTools:
    def test_validate_ok(self):
        rule = {"rule_name": "x", "condition": {"dt_type": "DT2"}, "action": {"exclude_position": "Runner"}}
        result = mcp_server.validate_staffing_rule(json.dumps(rule))
        assert result["valid"] is True
        assert result["conditions"] == ["Drive-Thru is DT2"]

    def test_validate_errors(self):
        result = mcp_server.validate_staffing_rule(json.dumps({"rule_name": ""}))
        assert result["valid"] is False
        assert set(result["errors"]) == {"rule_name", "conditions", "actions"}

    def test_weekly_requirements_with_inline_rules(self):
        rules = [{"rule_name": "r", "condition": {"day_of_week": "Monday"}, "action": {"exclude_position": "Manager"}}]
        result = mcp_server.weekly_requirements("2025-01-06", rules_json=json.dumps(rules))
        monday = result[0]
        assert monday["matched_rules"] == ["r"]
        assert "Manager" not in [p["position"] for p in monday["positions"]]


class TestStaffTool:
    def test_import_without_store(self):
        result = mcp_server.import_staff_csv("name,is_under_18\nJane Doe,yes\nJane Doe,no\nTom Baker,0\n")
        assert result["valid"] == ["Tom Baker"]
        assert result["errors"] == ["Duplicate names in CSV: jane doe"]
        assert result["summary"] == {"total": 1, "under_18": 0, "over_18": 1}


class TestScheduleTools:
    def test_ingest_list_and_export(self, artifacts):
        summary = mcp_server.ingest_schedule_text(SCHEDULE.read_text(encoding="utf-8"))
        assert summary["summary"]["total_shifts"] == 16
        assert sorted(summary["unmatched"]) == ["Amy Li", "Jane Doe", "Tom Baker"]

        listed = mcp_server.list_schedules()
        assert listed[0]["upload_id"] == summary["upload_id"]

        exported = mcp_server.export_deployments(summary["upload_id"], fmt="csv")
        assert Path(exported["path"]).exists()

    def test_unknown_export_format(self, artifacts):
        mcp_server.ingest_schedule_text(SCHEDULE.read_text(encoding="utf-8"))
        with pytest.raises(ValueError, match="Unsupported export format"):
            mcp_server.export_deployments(fmt="pdf")
