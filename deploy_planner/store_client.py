from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from time import sleep
from typing import Any

import httpx

from shift_core.models import DeploymentRecord, StaffRecord

from .config import StoreConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreOperation:
    method: str
    table: str


ALLOWED_OPERATIONS: dict[str, StoreOperation] = {
    "select_staff": StoreOperation("GET", "staff"),
    "select_staffing_rules": StoreOperation("GET", "staffing_rules"),
    "insert_schedule_upload": StoreOperation("POST", "shift_schedules"),
    "insert_deployments": StoreOperation("POST", "deployments"),
    "select_deployments": StoreOperation("GET", "deployments"),
}


class RestStoreClient:
    """Table-level client for the hosted persistence store.

    Only the operation names listed in ALLOWED_OPERATIONS are executable.
    Any unknown operation is rejected before any network request is sent.
    5xx responses and transport timeouts are retried with exponential backoff.
    """

    def __init__(
        self,
        cfg: StoreConfig,
        *,
        timeout_s: float = 30.0,
        retries: int = 3,
        client: httpx.Client | None = None,
        sleep_fn: Callable[[float], None] = sleep,
    ):
        self.base_url = cfg.url.rstrip("/")
        self.api_key = cfg.api_key
        self.timeout_s = timeout_s
        self.retries = max(1, retries)
        self._client = client
        self._sleep = sleep_fn

    def _headers(self, *, returning: bool = False) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        if returning:
            headers["Prefer"] = "return=representation"
        return headers

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._client is not None:
            return self._client.request(method, url, **kwargs)
        return httpx.request(method, url, **kwargs)

    def _request(
        self,
        *,
        operation: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> httpx.Response:
        op = ALLOWED_OPERATIONS.get(operation)
        if op is None:
            raise ValueError(f"Operation '{operation}' is not allowed for the persistence store")

        url = f"{self.base_url}/rest/v1/{op.table}"

        last_exc: Exception | None = None
        for attempt in range(self.retries):
            try:
                resp = self._send(
                    op.method,
                    url,
                    headers=self._headers(returning=op.method == "POST"),
                    params=params,
                    json=json_body,
                    timeout=self.timeout_s,
                )
                if resp.status_code >= 500 and attempt < self.retries - 1:
                    logger.warning("%s returned %s, retrying (attempt %d)", operation, resp.status_code, attempt + 1)
                    self._sleep(2**attempt)
                    continue
                resp.raise_for_status()
                return resp
            except (httpx.TimeoutException, httpx.ConnectError) as exc:
                last_exc = exc
                if attempt < self.retries - 1:
                    logger.warning("%s failed with %s, retrying (attempt %d)", operation, exc, attempt + 1)
                    self._sleep(2**attempt)
                    continue
                raise
        if last_exc:
            raise last_exc
        raise RuntimeError("request failed without an explicit exception")

    def fetch_staff(self) -> list[StaffRecord]:
        resp = self._request(
            operation="select_staff",
            params={"select": "id,name,is_under_18", "order": "name.asc"},
        )
        data = resp.json()
        if not isinstance(data, list):
            return []
        return [StaffRecord.from_dict(row) for row in data if isinstance(row, dict)]

    def fetch_staffing_rules(self, *, active_only: bool = True) -> list[dict[str, Any]]:
        params = {"select": "*", "order": "priority.asc"}
        if active_only:
            params["is_active"] = "eq.true"
        resp = self._request(operation="select_staffing_rules", params=params)
        data = resp.json()
        return data if isinstance(data, list) else []

    def insert_schedule_upload(self, row: dict[str, Any]) -> dict[str, Any]:
        resp = self._request(operation="insert_schedule_upload", json_body=[row])
        data = resp.json()
        if isinstance(data, list) and data:
            return data[0]
        return {}

    def insert_deployments(
        self,
        records: Iterable[DeploymentRecord],
        *,
        week_start: str,
        location: str,
        staff_ids: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Insert deployment rows keyed by week start and location."""
        staff_ids = staff_ids or {}
        rows = [
            {
                **record.to_dict(),
                "staff_id": staff_ids.get(record.employee_name),
                "week_start_date": week_start,
                "location": location,
            }
            for record in records
        ]
        if not rows:
            return []
        resp = self._request(operation="insert_deployments", json_body=rows)
        data = resp.json()
        return data if isinstance(data, list) else []

    def fetch_deployments(self, *, week_start: str, location: str) -> list[dict[str, Any]]:
        params = {
            "select": "*",
            "week_start_date": f"eq.{week_start}",
            "location": f"eq.{location}",
            "order": "date.asc,start_time.asc",
        }
        resp = self._request(operation="select_deployments", params=params)
        data = resp.json()
        return data if isinstance(data, list) else []
