from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


@dataclass(frozen=True)
class StoreConfig:
    url: str
    api_key: str


@dataclass(frozen=True)
class RuntimeConfig:
    artifact_root: Path
    default_location: str | None
    log_level: str


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def runtime_config() -> RuntimeConfig:
    artifact_root = Path(os.getenv("PLANNER_ARTIFACT_DIR", "./artifacts")).expanduser().resolve()
    default_location = os.getenv("PLANNER_DEFAULT_LOCATION") or None
    log_level = os.getenv("PLANNER_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    artifact_root.mkdir(parents=True, exist_ok=True)
    return RuntimeConfig(artifact_root=artifact_root, default_location=default_location, log_level=log_level)


def get_store_config() -> StoreConfig:
    url = os.getenv("PLANNER_STORE_URL", "").strip()
    api_key = os.getenv("PLANNER_STORE_KEY", "").strip()
    missing = [name for name, value in (("PLANNER_STORE_URL", url), ("PLANNER_STORE_KEY", api_key)) if not value]
    if missing:
        raise ValueError(f"Missing persistence store settings. Expected env vars {', '.join(missing)}")
    return StoreConfig(url=url.rstrip("/"), api_key=api_key)


def load_staffing_rules(rules_file: Path | None = None) -> list[dict[str, Any]]:
    """Rule rows from a JSON file: a list, or ``{"rules": [...]}``."""
    if rules_file is None:
        rules_file = Path(__file__).resolve().parent.parent / "config" / "staffing_rules.json"
    if not rules_file.exists():
        return []
    with rules_file.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if isinstance(payload, dict):
        payload = payload.get("rules", [])
    if not isinstance(payload, list):
        raise ValueError(f"Staffing rules file must hold a list of rules: {rules_file}")
    return payload
