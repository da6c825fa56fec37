"""Read staff CSV uploads into StaffRecord lists.

File-level problems (no data rows, missing ``name`` column) raise
ValidationError. Row-level problems are collected and the row skipped, so one
bad line never loses the rest of the upload.
"""

from __future__ import annotations

import csv
import io
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..errors import ValidationError
from ..models import StaffRecord
from .schemas import REQUIRED_STAFF_COLS, STAFF_COLS, to_bool_strict

logger = logging.getLogger(__name__)

_TEMPLATE_ROWS = [
    ("John Smith", "false"),
    ("Jane Doe", "true"),
    ("Alice Johnson", "false"),
]


@dataclass
class StaffImport:
    records: list[StaffRecord] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]


def parse_staff_csv(text: str) -> StaffImport:
    """Parse staff CSV text (header ``name[,is_under_18]``)."""
    rows = [r for r in csv.reader(io.StringIO(text or "")) if any(c.strip() for c in r)]
    if len(rows) < 2:
        raise ValidationError("CSV file is empty or has no data rows")

    headers = [h.strip().lower() for h in rows[0]]
    missing = [h for h in REQUIRED_STAFF_COLS if h not in headers]
    if missing:
        raise ValidationError(f"Missing required columns: {', '.join(missing)}")

    name_idx = headers.index("name")
    under_18_idx = headers.index("is_under_18") if "is_under_18" in headers else None

    result = StaffImport()
    for row_number, values in enumerate(rows[1:], start=2):
        values = [v.strip() for v in values]
        name = values[name_idx] if name_idx < len(values) else ""
        if not name:
            result.errors.append(ValidationError("Name is required", row=row_number))
            continue

        is_under_18: bool | None = False
        if under_18_idx is not None and under_18_idx < len(values):
            is_under_18 = to_bool_strict(values[under_18_idx])
        if is_under_18 is None:
            result.errors.append(
                ValidationError("is_under_18 must be true/false, yes/no, or 1/0", row=row_number)
            )
            continue

        result.records.append(StaffRecord(id=None, name=name, is_under_18=is_under_18))

    logger.info("Parsed staff CSV: %d records, %d row errors", len(result.records), len(result.errors))
    return result


def read_staff_csv(path: Path) -> StaffImport:
    return parse_staff_csv(Path(path).read_text(encoding="utf-8-sig"))


def validate_staff_records(
    records: Iterable[StaffRecord],
    existing_names: Iterable[str] = (),
) -> dict[str, list[Any]]:
    """Split import candidates into ``valid``, ``duplicates`` and ``errors``.

    ``duplicates`` are records whose name is already on file. A name repeated
    inside the upload is reported once in ``errors`` and none of its copies
    count as valid.
    """
    records = list(records)
    result: dict[str, list[Any]] = {"valid": [], "duplicates": [], "errors": []}
    if not records:
        return result

    seen: set[str] = set()
    repeated: list[str] = []
    for record in records:
        key = record.name.lower()
        if key in seen and key not in repeated:
            repeated.append(key)
        seen.add(key)
    if repeated:
        result["errors"].append(f"Duplicate names in CSV: {', '.join(repeated)}")

    on_file = {str(n).lower() for n in existing_names}
    for record in records:
        key = record.name.lower()
        if key in on_file:
            result["duplicates"].append(record)
        elif key not in repeated:
            result["valid"].append(record)
    return result


def staff_csv_template() -> str:
    lines = [",".join(STAFF_COLS)] + [f"{name},{flag}" for name, flag in _TEMPLATE_ROWS]
    return "\n".join(lines)
