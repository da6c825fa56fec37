"""Schedule ingestion and staffing-rule core shared by the planner services."""

from .classifier import classify_shift, deployment_slots, format_shift_type
from .deployments import build_deployment_records, summarize_deployments
from .errors import FormatError, ParseError, RuleEvaluationError, ScheduleError, ValidationError
from .models import DAY_NAMES, DeploymentRecord, EmployeeSchedule, ScheduleDocument, StaffRecord, TimeRange
from .reconcile import LinkedEmployee, LinkResult, link_schedule_to_staff, match_staff, staff_summary
from .rules import (
    ActionExpr,
    ConditionExpr,
    DeploymentContext,
    StaffingRule,
    apply_actions,
    build_context,
    describe_rule,
    evaluate,
    required_positions,
    validate_rule_definition,
)
from .time_utils import break_minutes, calc_shift_hours, date_for_day, to_military

# io module re-exports (openpyxl stays lazy)
from .io import parse_schedule_text, parse_staff_csv, write_deployments_csv

__all__ = [
    "DAY_NAMES",
    "ActionExpr",
    "ConditionExpr",
    "DeploymentContext",
    "DeploymentRecord",
    "EmployeeSchedule",
    "FormatError",
    "LinkResult",
    "LinkedEmployee",
    "ParseError",
    "RuleEvaluationError",
    "ScheduleDocument",
    "ScheduleError",
    "StaffRecord",
    "StaffingRule",
    "TimeRange",
    "ValidationError",
    "apply_actions",
    "break_minutes",
    "build_context",
    "build_deployment_records",
    "calc_shift_hours",
    "classify_shift",
    "date_for_day",
    "deployment_slots",
    "describe_rule",
    "evaluate",
    "format_shift_type",
    "link_schedule_to_staff",
    "match_staff",
    "parse_schedule_text",
    "parse_staff_csv",
    "required_positions",
    "staff_summary",
    "summarize_deployments",
    "to_military",
    "validate_rule_definition",
    "write_deployments_csv",
]
