"""Schedule ingestion pipeline: text -> document -> deployments -> staff links.

Also resolves staffing rules into the positions each shift of a week needs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any
from uuid import uuid4

from shift_core.deployments import build_deployment_records, summarize_deployments
from shift_core.io.schedule_text import parse_schedule_text
from shift_core.models import StaffRecord
from shift_core.reconcile import link_schedule_to_staff
from shift_core.rules import DEFAULT_SHIFT_CONFIG, apply_actions, build_context, evaluate, required_positions

from .utils import now_utc_iso, slug

logger = logging.getLogger(__name__)

RULE_SHIFT_TYPES = ("day", "night")


class CollectingObserver:
    """Keeps parser events for the upload record and mirrors them to the log."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    def notify(self, event: str, **details: Any) -> None:
        logger.debug("schedule parse: %s %s", event, details)
        self.events.append({"event": event, **details})


@dataclass(frozen=True)
class ScheduleIngestInput:
    text: str
    staff: Iterable[StaffRecord | Mapping[str, Any]] = field(default_factory=tuple)
    reference: date | None = None
    location: str | None = None


def ingest_schedule(inp: ScheduleIngestInput) -> dict[str, Any]:
    """Run the full ingestion for one schedule text.

    ParseError (no employees) and FormatError (bad time token) propagate;
    a schedule is stored whole or not at all.
    """
    observer = CollectingObserver()
    document = parse_schedule_text(inp.text, observer=observer, reference=inp.reference)
    records = build_deployment_records(document)
    link = link_schedule_to_staff(document, inp.staff)
    summary = summarize_deployments(records)

    doc = document.to_dict()
    if inp.location and not doc["location"]:
        doc["location"] = inp.location

    upload_id = f"sched-{doc['week_start']}-{slug(doc['location'])}-{uuid4().hex[:6]}"
    logger.info(
        "Ingested %s: %d employees, %d shifts, %s%% matched to staff",
        upload_id,
        summary["total_employees"],
        summary["total_shifts"],
        link.stats["match_rate"],
    )
    return {
        "upload_id": upload_id,
        "generated_at": now_utc_iso(),
        "document": doc,
        "deployments": [r.to_dict() for r in records],
        "employees": [e.to_dict() for e in link.employees],
        "link_stats": link.stats,
        "summary": summary,
        "parse_events": observer.events,
    }


def upload_row(upload: dict[str, Any]) -> dict[str, Any]:
    """Row for the store's schedule table."""
    document = upload["document"]
    return {
        "location": document.get("location") or "",
        "week_start_date": document.get("week_start"),
        "week_end_date": document.get("week_end"),
        "uploaded_at": upload.get("generated_at"),
        "raw_data": document,
    }


def staff_id_map(upload: dict[str, Any]) -> dict[str, Any]:
    return {e["name"]: e["staff_id"] for e in upload.get("employees", []) if e.get("matched")}


def shift_requirements(
    rules: Iterable[Any],
    week_start: date,
    *,
    shift_config: Mapping[str, Any] | None = None,
    core_positions: Iterable[Mapping[str, Any]] = (),
) -> list[dict[str, Any]]:
    """Positions required for each day/night shift of the week.

    One entry per (date, shift type) with the matched rule names and the
    merged position list.
    """
    rules = list(rules)
    core_positions = list(core_positions)
    config = {**DEFAULT_SHIFT_CONFIG, **(shift_config or {})}
    result = []
    for offset in range(7):
        iso = (week_start + timedelta(days=offset)).isoformat()
        for shift_type in RULE_SHIFT_TYPES:
            ctx = build_context(iso, shift_type, config)
            actions = evaluate(rules, ctx)
            merged = apply_actions(config, actions)
            result.append({
                "date": iso,
                "day_of_week": ctx.day_of_week,
                "shift_type": shift_type,
                "matched_rules": [a.source for a in actions],
                "positions": required_positions(merged, core_positions),
            })
    return result
