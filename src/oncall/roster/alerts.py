from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

import structlog

from oncall.clients.opsgenie import MAX_ALERT_LIMIT
from oncall.roster.models import Alert
from oncall.roster.resolver import remote_step

logger = structlog.get_logger()

DEFAULT_ALERT_LIMIT = 20


class AlertClient(Protocol):
    async def list_alerts(
        self,
        query: str,
        *,
        limit: int = DEFAULT_ALERT_LIMIT,
        sort: str = "createdAt",
        order: str = "desc",
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        ...


def open_alerts_query(team: str) -> str:
    """OpsGenie search query for open alerts routed to ``team``."""
    escaped = team.replace("\\", "\\\\").replace('"', '\\"')
    return f'status:open AND responders: "{escaped}"'


def alert_from_api(raw: dict[str, Any]) -> Alert:
    return Alert(
        created=datetime.fromisoformat(raw["createdAt"]),
        message=raw.get("message", ""),
        priority=str(raw.get("priority", "")),
        acknowledged=bool(raw.get("acknowledged", False)),
        owner=raw.get("owner") or "",
        id=raw.get("id", ""),
        tiny_id=str(raw.get("tinyId", "")),
    )


class AlertLister:
    """Lists a team's open alerts, newest first."""

    def __init__(self, client: AlertClient, *, timeout: float | None = None) -> None:
        self._client = client
        self._timeout = timeout

    async def list_alerts(self, team: str, limit: int = DEFAULT_ALERT_LIMIT) -> list[Alert]:
        if not 1 <= limit <= MAX_ALERT_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_ALERT_LIMIT}, got {limit}")
        with remote_step("list alerts", team):
            raw_alerts = await self._client.list_alerts(
                open_alerts_query(team),
                limit=limit,
                sort="createdAt",
                timeout=self._timeout,
            )
            alerts = [alert_from_api(raw) for raw in raw_alerts]
        logger.debug("alerts_listed", team=team, count=len(alerts))
        return alerts
