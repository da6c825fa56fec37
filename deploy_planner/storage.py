from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _json_dump(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, ensure_ascii=False)


def _json_load(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


def schedule_root(artifact_root: Path) -> Path:
    path = artifact_root / "schedules"
    path.mkdir(parents=True, exist_ok=True)
    return path


def export_root(artifact_root: Path) -> Path:
    path = artifact_root / "exports"
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_schedule(artifact_root: Path, upload: dict[str, Any], source_text: str | None = None) -> Path:
    """Persist one ingested schedule (document, deployments, link stats).

    Writes ``schedule.json``, the optional extracted text, a manifest, and
    points ``latest.json`` at it.
    """
    root = schedule_root(artifact_root)
    uid = upload["upload_id"]
    target = root / uid
    target.mkdir(parents=True, exist_ok=True)

    _json_dump(target / "schedule.json", upload)
    if source_text is not None:
        (target / "source.txt").write_text(source_text, encoding="utf-8")

    document = upload.get("document", {})
    manifest = {
        "upload_id": uid,
        "location": document.get("location"),
        "location_code": document.get("location_code"),
        "week_start": document.get("week_start"),
        "week_end": document.get("week_end"),
        "generated_at": upload.get("generated_at"),
        "counts": upload.get("summary", {}),
        "path": str(target.resolve()),
    }
    _json_dump(target / "manifest.json", manifest)
    _json_dump(root / "latest.json", manifest)
    logger.info("Saved schedule %s to %s", uid, target)
    return target


def list_schedules(artifact_root: Path, limit: int = 20) -> list[dict[str, Any]]:
    root = schedule_root(artifact_root)
    manifests: list[dict[str, Any]] = []
    for child in root.iterdir():
        if not child.is_dir():
            continue
        manifest_file = child / "manifest.json"
        if not manifest_file.exists():
            continue
        try:
            manifests.append(_json_load(manifest_file))
        except (OSError, ValueError):
            logger.warning("Skipping unreadable manifest %s", manifest_file)
            continue
    manifests.sort(key=lambda row: row.get("generated_at") or "", reverse=True)
    return manifests[:limit]


def load_schedule(artifact_root: Path, upload_id: str | None = None) -> dict[str, Any]:
    root = schedule_root(artifact_root)
    if upload_id:
        manifest_path = root / upload_id / "manifest.json"
    else:
        manifest_path = root / "latest.json"
    if not manifest_path.exists():
        raise FileNotFoundError("schedule manifest not found")
    manifest = _json_load(manifest_path)
    uid = manifest["upload_id"]
    path = root / uid / "schedule.json"
    if not path.exists():
        raise FileNotFoundError(f"schedule payload not found: {uid}")
    return _json_load(path)
