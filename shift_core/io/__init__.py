"""Input/output layer for schedule ingestion.

Public API:
    parse_schedule_text(text)        -- extracted PDF text -> ScheduleDocument
    parse_staff_csv(text)            -- staff CSV text -> StaffImport(records, errors)
    validate_staff_records(...)      -- split records into valid/duplicates/errors
    write_deployments_csv(rows, p)   -- deployment rows -> CSV file
    render_deployments_xlsx(rows, p) -- multi-sheet deployment report workbook
"""

from .schedule_text import LoggingObserver, ParseObserver, ScheduleTextParser, parse_schedule_text
from .staff_csv import StaffImport, parse_staff_csv, read_staff_csv, staff_csv_template, validate_staff_records
from .writer import write_deployments_csv, write_summary_json

__all__ = [
    "LoggingObserver",
    "ParseObserver",
    "ScheduleTextParser",
    "StaffImport",
    "parse_schedule_text",
    "parse_staff_csv",
    "read_staff_csv",
    "staff_csv_template",
    "validate_staff_records",
    "write_deployments_csv",
    "write_summary_json",
]

# Lazy import for the optional heavy dependency (openpyxl).
def render_deployments_xlsx(*args, **kwargs):
    from .xlsx import render_deployments_xlsx as _fn
    return _fn(*args, **kwargs)
