"""Write deployment rows to CSV and the weekly summary to JSON."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from ..models import DAY_NAMES, DeploymentRecord
from ..time_utils import calc_shift_hours
from .schemas import DEPLOYMENT_COLS, fmt_bool


def _weekday(iso_date: str) -> str:
    try:
        return DAY_NAMES[date.fromisoformat(iso_date).weekday()]
    except (ValueError, TypeError):
        return ""


def deployment_row(record: DeploymentRecord) -> dict[str, Any]:
    return {
        "employee_name": record.employee_name,
        "role": record.role,
        "date": record.date,
        "day": _weekday(record.date),
        "shift_type": record.shift_type,
        "start_time": record.start_time,
        "end_time": record.end_time,
        "hours": round(calc_shift_hours(record.start_time, record.end_time), 2),
        "is_overnight": fmt_bool(record.is_overnight),
    }


def write_deployments_csv(records: Iterable[DeploymentRecord], path: Path) -> Path:
    """Write one CSV row per deployment, sorted by date then start time."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = sorted(records, key=lambda r: (r.date, r.start_time, r.employee_name))
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=DEPLOYMENT_COLS)
        writer.writeheader()
        for record in rows:
            writer.writerow(deployment_row(record))
    return path


def write_summary_json(summary: dict[str, Any], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(summary, indent=2, ensure_ascii=False, default=str) + "\n",
        encoding="utf-8",
    )
    return path
