"""Render a week of deployments to a multi-sheet XLSX workbook."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path

from ..classifier import format_shift_type
from ..deployments import summarize_deployments
from ..models import DAY_NAMES, SHIFT_TYPES, DeploymentRecord
from .schemas import fmt_time

_DAY_SHEET_COLS = ["Employee Name", "Role", "Shift Type", "Start Time", "End Time"]
_SHIFT_SHEET_COLS = ["Employee Name", "Role", "Date", "Start Time", "End Time"]


def _get_openpyxl():
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Font, PatternFill
        return Workbook, Font, PatternFill
    except ImportError as exc:
        raise ImportError("openpyxl is required for XLSX export: pip install openpyxl") from exc


def _style_rows(ws, row_numbers: Iterable[int]):
    """Bold + blue fill on the given header rows of a worksheet."""
    _, Font, PatternFill = _get_openpyxl()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    for n in row_numbers:
        for cell in ws[n]:
            cell.font = header_font
            cell.fill = header_fill


def _day_title(iso_date: str) -> str:
    d = date.fromisoformat(iso_date)
    return f"{DAY_NAMES[d.weekday()]} - {d.isoformat()}"


def render_deployments_xlsx(
    records: Iterable[DeploymentRecord],
    path: Path,
    *,
    location: str = "",
    week_start: date | str | None = None,
) -> Path:
    """Write the deployment report workbook.

    Sheets: Summary, one sheet per date (named by weekday), By Shift Type.
    Returns the path to the written file.
    """
    Workbook, Font, _ = _get_openpyxl()
    rows = sorted(records, key=lambda r: (r.date, r.start_time, r.employee_name))
    summary = summarize_deployments(rows)
    if isinstance(week_start, date):
        week_start = week_start.isoformat()

    wb = Workbook()

    # --- Summary sheet ---
    ws_summary = wb.active
    ws_summary.title = "Summary"
    ws_summary.append(["Shift Deployment Report"])
    ws_summary.append(["Location:", location])
    ws_summary.append(["Week Starting:", week_start or ""])
    ws_summary.append(["Generated:", datetime.now().isoformat(timespec="seconds")])
    ws_summary.append([])
    ws_summary.append(["Summary Statistics"])
    ws_summary.append(["Metric", "Count"])
    ws_summary.append(["Total Employees", summary["total_employees"]])
    ws_summary.append(["Total Shifts", summary["total_shifts"]])
    for kind in SHIFT_TYPES:
        ws_summary.append([format_shift_type(kind), summary["by_shift_type"][kind]])
    ws_summary.append(["Total Hours", summary["total_hours"]])
    ws_summary["A1"].font = Font(bold=True, size=14)
    _style_rows(ws_summary, [7])

    # --- One sheet per date ---
    by_date: dict[str, list[DeploymentRecord]] = defaultdict(list)
    for r in rows:
        by_date[r.date].append(r)

    for iso_date in sorted(by_date):
        ws_day = wb.create_sheet(DAY_NAMES[date.fromisoformat(iso_date).weekday()][:31])
        ws_day.append([_day_title(iso_date)])
        ws_day.append([])
        ws_day.append(_DAY_SHEET_COLS)
        for r in by_date[iso_date]:
            ws_day.append([
                r.employee_name,
                r.role,
                r.shift_type.capitalize(),
                fmt_time(r.start_time),
                fmt_time(r.end_time),
            ])
        _style_rows(ws_day, [3])

    # --- By Shift Type sheet ---
    ws_shift = wb.create_sheet("By Shift Type")
    ws_shift.append(["Deployment by Shift Type"])
    header_rows = []
    for kind in SHIFT_TYPES:
        ws_shift.append([])
        ws_shift.append([format_shift_type(kind)])
        ws_shift.append(_SHIFT_SHEET_COLS)
        header_rows.append(ws_shift.max_row)
        for r in rows:
            if r.shift_type != kind:
                continue
            ws_shift.append([
                r.employee_name,
                r.role,
                r.date,
                fmt_time(r.start_time),
                fmt_time(r.end_time),
            ])
    _style_rows(ws_shift, header_rows)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return path
