"""deploy-planner MCP server.

Exposes tools for schedule ingestion, shift classification, staffing-rule
evaluation, staff CSV import, local artifact persistence, and exports.
"""
from __future__ import annotations

import argparse
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from shift_core.classifier import classify_shift as _classify_shift
from shift_core.classifier import deployment_slots, format_shift_type
from shift_core.io.staff_csv import parse_staff_csv, validate_staff_records
from shift_core.io.writer import write_deployments_csv, write_summary_json
from shift_core.models import DeploymentRecord
from shift_core.reconcile import staff_summary
from shift_core.rules import StaffingRule, describe_rule, validate_rule_definition
from shift_core.time_utils import to_military

from .config import get_store_config, load_env, load_staffing_rules, runtime_config
from .ingest import ScheduleIngestInput, ingest_schedule, shift_requirements, staff_id_map, upload_row
from .storage import export_root
from .storage import list_schedules as _list_schedules
from .storage import load_schedule as _load_schedule
from .storage import save_schedule as _save_schedule
from .store_client import RestStoreClient

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "deploy-planner",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Weekly deployment planner for quick-service restaurants. "
        "Parses schedule text into per-day deployments, classifies shifts "
        "as day/night/both, links employees to staff records, and evaluates "
        "conditional staffing rules."
    ),
)

_ENV_FILE: str | None = None
_STORE: RestStoreClient | None = None


def _store() -> RestStoreClient:
    global _STORE
    if _STORE is None:
        load_env(_ENV_FILE or os.getenv("PLANNER_ENV_FILE"))
        _STORE = RestStoreClient(get_store_config())
    return _STORE


def _artifact_root() -> Path:
    load_env(_ENV_FILE or os.getenv("PLANNER_ENV_FILE"))
    return runtime_config().artifact_root


def _rules(rules_json: str | None) -> list[dict[str, Any]]:
    if rules_json:
        payload = json.loads(rules_json)
        return payload if isinstance(payload, list) else [payload]
    return load_staffing_rules()


# -- Schedule ingestion --

@mcp.tool()
def ingest_schedule_text(
    text: str,
    reference_date: str | None = None,
    use_store: bool = False,
    persist: bool = True,
) -> dict[str, Any]:
    """Parse extracted schedule text into deployments and link staff records.

    With use_store=True, staff are read from and deployments written to the
    persistence store. Returns the upload summary (ids, counts, link stats).
    """
    staff = _store().fetch_staff() if use_store else []
    reference = date.fromisoformat(reference_date) if reference_date else None
    load_env(_ENV_FILE or os.getenv("PLANNER_ENV_FILE"))
    upload = ingest_schedule(
        ScheduleIngestInput(
            text=text,
            staff=staff,
            reference=reference,
            location=runtime_config().default_location,
        )
    )
    if persist:
        _save_schedule(_artifact_root(), upload, source_text=text)

    if use_store:
        document = upload["document"]
        _store().insert_schedule_upload(upload_row(upload))
        records = [DeploymentRecord(**row) for row in upload["deployments"]]
        _store().insert_deployments(
            records,
            week_start=document["week_start"],
            location=document["location"],
            staff_ids=staff_id_map(upload),
        )

    return {
        "upload_id": upload["upload_id"],
        "location": upload["document"]["location"],
        "week_start": upload["document"]["week_start"],
        "week_end": upload["document"]["week_end"],
        "summary": upload["summary"],
        "link_stats": upload["link_stats"],
        "unmatched": [e["name"] for e in upload["employees"] if not e["matched"]],
    }


@mcp.tool()
def list_schedules(limit: int = 20) -> list[dict[str, Any]]:
    """List locally stored schedule manifests, newest first."""
    return _list_schedules(_artifact_root(), limit=limit)


@mcp.tool()
def load_schedule(upload_id: str | None = None) -> dict[str, Any]:
    """Load a stored schedule by ID (or latest if omitted)."""
    return _load_schedule(_artifact_root(), upload_id=upload_id)


@mcp.tool()
def export_deployments(upload_id: str | None = None, fmt: str = "xlsx") -> dict[str, Any]:
    """Write a stored schedule's deployments as CSV or an XLSX report."""
    upload = _load_schedule(_artifact_root(), upload_id=upload_id)
    records = [DeploymentRecord(**row) for row in upload.get("deployments", [])]
    document = upload.get("document", {})
    base = export_root(_artifact_root()) / upload["upload_id"]
    if fmt == "csv":
        path = write_deployments_csv(records, base.with_suffix(".csv"))
    elif fmt == "xlsx":
        from shift_core.io.xlsx import render_deployments_xlsx

        path = render_deployments_xlsx(
            records,
            base.with_suffix(".xlsx"),
            location=document.get("location") or "",
            week_start=document.get("week_start"),
        )
    else:
        raise ValueError(f"Unsupported export format '{fmt}'. Use 'csv' or 'xlsx'.")
    summary_path = write_summary_json(upload.get("summary", {}), base.with_suffix(".summary.json"))
    return {
        "upload_id": upload["upload_id"],
        "format": fmt,
        "path": str(path),
        "summary_path": str(summary_path),
    }


# -- Shift classification --

@mcp.tool()
def classify_shift(start: str, end: str) -> dict[str, Any]:
    """Classify a shift. Accepts 24h HH:MM or 12h schedule tokens like 6:30p."""
    start_24 = start if start[-1:].isdigit() else to_military(start)
    end_24 = end if end[-1:].isdigit() else to_military(end)
    shift_type = _classify_shift(start_24, end_24)
    return {
        "shift_type": shift_type,
        "label": format_shift_type(shift_type),
        "slots": deployment_slots(shift_type),
    }


# -- Staffing rules --

@mcp.tool()
def list_staffing_rules(use_store: bool = False) -> list[dict[str, Any]]:
    """List staffing rules with their English descriptions."""
    rows = _store().fetch_staffing_rules() if use_store else load_staffing_rules()
    result = []
    for row in rows:
        rule = StaffingRule.from_dict(row)
        conditions, actions = describe_rule(rule.condition, rule.action)
        result.append({
            "rule_name": rule.name,
            "priority": rule.priority,
            "is_active": rule.is_active,
            "conditions": conditions,
            "actions": actions,
            "error": rule.error,
        })
    return result


@mcp.tool()
def validate_staffing_rule(rule_json: str) -> dict[str, Any]:
    """Check a rule definition before saving. Returns field errors, if any."""
    payload = json.loads(rule_json)
    errors = validate_rule_definition(payload)
    if errors:
        return {"valid": False, "errors": errors, "conditions": [], "actions": []}
    conditions, actions = describe_rule(payload.get("condition"), payload.get("action"))
    return {"valid": True, "errors": {}, "conditions": conditions, "actions": actions}


@mcp.tool()
def weekly_requirements(
    week_start: str,
    shift_config_json: str | None = None,
    rules_json: str | None = None,
) -> list[dict[str, Any]]:
    """Required positions for every day/night shift of a week, after rules."""
    config = json.loads(shift_config_json) if shift_config_json else None
    return shift_requirements(_rules(rules_json), date.fromisoformat(week_start), shift_config=config)


# -- Staff import --

@mcp.tool()
def import_staff_csv(csv_text: str, check_store: bool = False) -> dict[str, Any]:
    """Parse and validate a staff CSV. Does not write anything.

    With check_store=True, names already in the store are reported as duplicates.
    """
    parsed = parse_staff_csv(csv_text)
    existing = [s.name for s in _store().fetch_staff()] if check_store else []
    checked = validate_staff_records(parsed.records, existing)
    return {
        "records": len(parsed.records),
        "row_errors": parsed.error_messages,
        "valid": [r.name for r in checked["valid"]],
        "duplicates": [r.name for r in checked["duplicates"]],
        "errors": checked["errors"],
        "summary": staff_summary(checked["valid"]),
    }


# -- Server entrypoints --

async def _run_http() -> None:
    import uvicorn
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import JSONResponse, PlainTextResponse
    from starlette.routing import Route

    api_key = os.getenv("MCP_API_KEY")

    class BearerAuth(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            if request.url.path == "/health":
                return await call_next(request)
            auth = request.headers.get("authorization", "")
            if not auth.startswith("Bearer ") or auth[7:] != api_key:
                return JSONResponse({"error": "unauthorized"}, status_code=401)
            return await call_next(request)

    starlette_app = mcp.streamable_http_app()

    if api_key:
        starlette_app.add_middleware(BearerAuth)

    starlette_app.routes.append(
        Route("/health", lambda r: PlainTextResponse("ok"))
    )

    config = uvicorn.Config(
        starlette_app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    global _ENV_FILE

    parser = argparse.ArgumentParser(description="Run deploy-planner MCP server")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http when PORT is set, else stdio)",
    )
    args = parser.parse_args()
    _ENV_FILE = args.env_file

    load_env(_ENV_FILE or os.getenv("PLANNER_ENV_FILE"))
    logging.basicConfig(
        level=runtime_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transport = args.transport
    if transport is None:
        transport = "streamable-http" if os.getenv("PORT") else "stdio"
    logger.info("Starting deploy-planner MCP server (%s)", transport)

    if transport == "streamable-http":
        import anyio
        anyio.run(_run_http)
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()
