"""Root test configuration and an in-memory OpsGenie double."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
import structlog
from oncall.clients.base import PermanentHTTPError
from oncall.roster.models import Period

NOW = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def at(hours: float) -> datetime:
    return NOW + timedelta(hours=hours)


def period(start_h: float, end_h: float, who: str) -> Period:
    """Period between NOW+start_h and NOW+end_h held by ``who``."""
    return Period(starts=at(start_h), ends=at(end_h), occupant=f"{who}@example.com", occupant_id=who)


def timeline(name: str, *rotations: list[tuple[float, float, str]]) -> dict:
    """OpsGenie timeline payload; each rotation is a list of (start_h, end_h, user)."""
    return {
        "_parent": {"id": f"{name}-id", "name": name, "enabled": True},
        "finalTimeline": {
            "rotations": [
                {
                    "name": f"rotation-{i}",
                    "periods": [
                        {
                            "startDate": at(s).isoformat(),
                            "endDate": at(e).isoformat(),
                            "type": "default",
                            "recipient": {"type": "user", "id": who, "name": f"{who}@example.com"},
                        }
                        for s, e, who in rotation
                    ],
                }
                for i, rotation in enumerate(rotations)
            ]
        },
    }


def tier(schedule_id: str, amount: int = 0, unit: str = "minutes") -> dict:
    return {
        "condition": "if-not-acked",
        "notifyType": "default",
        "delay": {"timeAmount": amount, "timeUnit": unit},
        "recipient": {"type": "schedule", "id": schedule_id, "name": schedule_id},
    }


class FakeOpsGenie:
    """Records every call; ``fail`` maps a method name to the error it raises."""

    def __init__(
        self,
        *,
        routing_rules=None,
        escalations=None,
        timelines=None,
        users=None,
        alerts=None,
        fail=None,
    ):
        self.routing_rules = routing_rules or {}
        self.escalations = escalations or {}
        self.timelines = timelines or {}
        self.users = users or {}
        self.alerts = alerts or []
        self.fail = fail or {}
        self.calls = []

    def _record(self, method, *args, **kwargs):
        self.calls.append((method, args, kwargs))
        if method in self.fail:
            raise self.fail[method]

    async def list_routing_rules(self, team_name, *, timeout=None):
        self._record("list_routing_rules", team_name)
        return self.routing_rules.get(team_name, [])

    async def get_escalation(self, escalation_id, *, timeout=None):
        self._record("get_escalation", escalation_id)
        if escalation_id not in self.escalations:
            raise PermanentHTTPError("404 Not Found", status_code=404)
        return self.escalations[escalation_id]

    async def get_timeline(self, schedule_id, *, weeks, date, timeout=None):
        self._record("get_timeline", schedule_id, weeks=weeks, date=date)
        return self.timelines[schedule_id]

    async def get_user(self, user_id, *, timeout=None):
        self._record("get_user", user_id)
        return self.users.get(user_id, {"id": user_id})

    async def list_alerts(self, query, *, limit=20, sort="createdAt", order="desc", timeout=None):
        self._record("list_alerts", query, limit=limit, sort=sort)
        return self.alerts[:limit]

    def methods_called(self):
        return [c[0] for c in self.calls]


def two_tier_client(**overrides) -> FakeOpsGenie:
    """Team "sre": tier 1 after 5 min on "primary", tier 2 after 1 h on "secondary"."""
    data = dict(
        routing_rules={
            "sre": [{"id": "rr-1", "name": "Default", "notify": {"type": "escalation", "id": "esc-1"}}]
        },
        escalations={
            "esc-1": {
                "id": "esc-1",
                "name": "SRE escalation",
                "rules": [tier("primary", 5, "minutes"), tier("secondary", 1, "hours")],
            }
        },
        timelines={
            "primary": timeline("SRE Primary", [(-2, -1, "alice"), (-1, 1, "alice"), (1, 3, "bob"), (3, 5, "carol")]),
            "secondary": timeline("SRE Secondary", [(-4, 20, "dave"), (20, 44, "erin")]),
        },
    )
    data.update(overrides)
    return FakeOpsGenie(**data)


@pytest.fixture
def fake_client():
    return two_tier_client()


@pytest.fixture
def clock():
    return lambda: NOW
