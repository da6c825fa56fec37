from __future__ import annotations

import re
import unicodedata
from datetime import datetime, timezone

UTC = timezone.utc


def canonical_name(value: str) -> str:
    s = unicodedata.normalize("NFKD", (value or ""))
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.lower().strip()
    s = re.sub(r"[^a-z0-9]+", " ", s)
    s = re.sub(r"\s+", " ", s)
    return s


def slug(value: str) -> str:
    return canonical_name(value).replace(" ", "-") or "unknown"


def now_utc_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")
