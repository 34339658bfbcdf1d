import asyncio
from datetime import datetime, timezone

import pytest
import respx
from circuitbreaker import CircuitBreakerMonitor
from httpx import Response
from oncall.clients.base import (
    CircuitOpenError,
    PermanentHTTPError,
    RequestTimeoutError,
    RetryableHTTPError,
)
from oncall.clients.opsgenie import OpsGenieClient

BASE = "https://api.opsgenie.com"


@pytest.mark.asyncio
async def test_list_routing_rules_by_team_name():
    client = OpsGenieClient("key-123")

    with respx.mock:
        route = respx.get(f"{BASE}/v2/teams/sre/routing-rules").mock(
            return_value=Response(200, json={"data": [{"id": "rr-1", "notify": {"id": "esc-1"}}]})
        )

        rules = await client.list_routing_rules("sre")

        assert rules == [{"id": "rr-1", "notify": {"id": "esc-1"}}]
        request = route.calls.last.request
        assert request.url.params["teamIdentifierType"] == "name"
        assert request.headers["Authorization"] == "GenieKey key-123"


@pytest.mark.asyncio
async def test_get_escalation():
    client = OpsGenieClient("key")

    with respx.mock:
        route = respx.get(f"{BASE}/v2/escalations/esc-1").mock(
            return_value=Response(200, json={"data": {"id": "esc-1", "rules": []}})
        )

        escalation = await client.get_escalation("esc-1")

        assert escalation == {"id": "esc-1", "rules": []}
        assert route.calls.last.request.url.params["identifierType"] == "id"


@pytest.mark.asyncio
async def test_get_timeline_window():
    client = OpsGenieClient("key")
    date = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)

    with respx.mock:
        route = respx.get(f"{BASE}/v2/schedules/sched-1/timeline").mock(
            return_value=Response(200, json={"data": {"_parent": {"name": "Primary"}}})
        )

        timeline = await client.get_timeline("sched-1", weeks=3, date=date)

        assert timeline["_parent"]["name"] == "Primary"
        params = route.calls.last.request.url.params
        assert params["interval"] == "3"
        assert params["intervalUnit"] == "weeks"
        assert params["date"] == "2024-03-04T12:00:00+00:00"


@pytest.mark.asyncio
async def test_list_alerts_query():
    client = OpsGenieClient("key", base_url="https://api.eu.opsgenie.com/")

    with respx.mock:
        route = respx.get("https://api.eu.opsgenie.com/v2/alerts").mock(
            return_value=Response(200, json={"data": [{"id": "a1"}]})
        )

        alerts = await client.list_alerts('status:open AND responders: "sre"', limit=5)

        assert alerts == [{"id": "a1"}]
        params = route.calls.last.request.url.params
        assert params["query"] == 'status:open AND responders: "sre"'
        assert params["limit"] == "5"
        assert params["sort"] == "createdAt"


@pytest.mark.asyncio
async def test_list_alerts_rejects_large_limit():
    with pytest.raises(ValueError):
        await OpsGenieClient("key").list_alerts("status:open", limit=500)


@pytest.mark.asyncio
async def test_retry_on_503():
    client = OpsGenieClient("key")

    with respx.mock:
        route = respx.get(f"{BASE}/v2/users/u-1")
        route.side_effect = [
            Response(503),
            Response(200, json={"data": {"id": "u-1"}}),
        ]

        user = await client.get_user("u-1")
        assert user == {"id": "u-1"}
        assert route.call_count == 2


@pytest.mark.asyncio
async def test_permanent_error_no_retry():
    client = OpsGenieClient("bad-key")

    with respx.mock:
        route = respx.get(f"{BASE}/v2/escalations/esc-1")
        route.mock(return_value=Response(401, json={"message": "Key is not valid"}))

        with pytest.raises(PermanentHTTPError) as exc:
            await client.get_escalation("esc-1")

        assert exc.value.status_code == 401
        assert route.call_count == 1


@pytest.mark.asyncio
async def test_deadline_exceeded():
    client = OpsGenieClient("key", timeout=0.05)

    async def hang(*args, **kwargs):
        await asyncio.sleep(5)

    client._request = hang

    with pytest.raises(RequestTimeoutError):
        await client.get_user("u-1")


@pytest.fixture
def closed_circuit():
    breaker = CircuitBreakerMonitor.get("BaseHTTPClient._request")
    breaker.reset()
    yield breaker
    breaker.reset()


@pytest.mark.asyncio
async def test_circuit_opens_after_repeated_failures(closed_circuit, monkeypatch):
    async def no_wait(seconds):
        return None

    monkeypatch.setattr(asyncio, "sleep", no_wait)
    client = OpsGenieClient("key")

    with respx.mock:
        route = respx.get(f"{BASE}/v2/users/u-1")
        route.mock(return_value=Response(503))

        for _ in range(5):
            with pytest.raises(RetryableHTTPError):
                await client.get_user("u-1")
        assert closed_circuit.opened

        with pytest.raises(CircuitOpenError):
            await client.get_user("u-1")
        assert route.call_count == 15
