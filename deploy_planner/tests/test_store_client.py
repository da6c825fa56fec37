"""Tests for the persistence store client, using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from deploy_planner.config import StoreConfig
from deploy_planner.store_client import RestStoreClient
from shift_core.models import DeploymentRecord, StaffRecord

CFG = StoreConfig(url="https://store.example.com", api_key="secret")


def _client(handler, **kwargs):
    sleeps = []
    client = RestStoreClient(
        CFG,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep_fn=sleeps.append,
        **kwargs,
    )
    return client, sleeps


class TestAllowList:
    def test_unknown_operation_sends_nothing(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[])

        client, _ = _client(handler)
        with pytest.raises(ValueError, match="not allowed"):
            client._request(operation="delete_staff")
        assert calls == []


class TestReads:
    def test_fetch_staff(self):
        def handler(request):
            assert request.url.path == "/rest/v1/staff"
            assert request.headers["apikey"] == "secret"
            assert request.headers["authorization"] == "Bearer secret"
            return httpx.Response(200, json=[{"id": 7, "name": "Jane Doe", "is_under_18": True}])

        client, _ = _client(handler)
        assert client.fetch_staff() == [StaffRecord(id=7, name="Jane Doe", is_under_18=True)]

    def test_fetch_deployments_filters(self):
        def handler(request):
            params = request.url.params
            assert params["week_start_date"] == "eq.2025-01-06"
            assert params["location"] == "eq.KFC Wrexham"
            return httpx.Response(200, json=[{"id": 1}])

        client, _ = _client(handler)
        assert client.fetch_deployments(week_start="2025-01-06", location="KFC Wrexham") == [{"id": 1}]

    def test_fetch_rules_active_only(self):
        def handler(request):
            assert request.url.params["is_active"] == "eq.true"
            return httpx.Response(200, json={"unexpected": "shape"})

        client, _ = _client(handler)
        assert client.fetch_staffing_rules() == []


class TestWrites:
    def test_insert_deployments(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["prefer"] = request.headers.get("prefer")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json=seen["body"])

        client, _ = _client(handler)
        record = DeploymentRecord("Jane Doe", "Cook", "2025-01-06", "09:00:00", "17:00:00", "day")
        rows = client.insert_deployments(
            [record], week_start="2025-01-06", location="KFC Wrexham", staff_ids={"Jane Doe": 7}
        )
        assert seen["method"] == "POST"
        assert seen["prefer"] == "return=representation"
        assert rows[0]["staff_id"] == 7
        assert rows[0]["week_start_date"] == "2025-01-06"
        assert rows[0]["location"] == "KFC Wrexham"
        assert rows[0]["shift_type"] == "day"

    def test_insert_nothing_skips_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        client, _ = _client(handler)
        assert client.insert_deployments([], week_start="2025-01-06", location="x") == []

    def test_insert_schedule_upload_returns_row(self):
        def handler(request):
            return httpx.Response(201, json=[{"id": 42, **json.loads(request.content)[0]}])

        client, _ = _client(handler)
        row = client.insert_schedule_upload({"location": "KFC Wrexham"})
        assert row["id"] == 42


class TestRetries:
    def test_retries_server_errors_with_backoff(self):
        responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json=[])])

        client, sleeps = _client(lambda request: next(responses))
        assert client.fetch_staff() == []
        assert sleeps == [1, 2]

    def test_gives_up_after_retries(self):
        client, sleeps = _client(lambda request: httpx.Response(500), retries=2)
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_staff()
        assert sleeps == [1]

    def test_client_errors_are_not_retried(self):
        client, sleeps = _client(lambda request: httpx.Response(401))
        with pytest.raises(httpx.HTTPStatusError):
            client.fetch_staff()
        assert sleeps == []

    def test_timeouts_are_retried(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, json=[])

        client, sleeps = _client(handler)
        assert client.fetch_staff() == []
        assert len(attempts) == 2
        assert sleeps == [1]
