"""
OpsGenie REST API v2 client.

Read-only: exposes the five calls the roster and alert views need and returns
the ``data`` member of each response untouched.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import quote

import structlog

from oncall.clients.base import BaseHTTPClient

logger = structlog.get_logger()

DEFAULT_BASE_URL = "https://api.opsgenie.com"
DEFAULT_USER_AGENT = "oncall-opsgenie/0.1.0"
MAX_ALERT_LIMIT = 100


def _segment(value: str) -> str:
    return quote(value, safe="")


class OpsGenieClient(BaseHTTPClient):
    """Client for the subset of the OpsGenie API used to build rosters."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        super().__init__(base_url, timeout=timeout)
        self._api_key = api_key
        self._user_agent = user_agent

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"GenieKey {self._api_key}",
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }

    async def _data(self, path: str, params: dict[str, Any], timeout: float | None) -> Any:
        body = await self.get(path, params=params, timeout=timeout)
        return body.get("data")

    async def list_routing_rules(
        self, team_name: str, *, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """List a team's routing rules in evaluation order."""
        rules = await self._data(
            f"/v2/teams/{_segment(team_name)}/routing-rules",
            {"teamIdentifierType": "name"},
            timeout,
        )
        logger.debug("routing_rules_listed", team=team_name, count=len(rules or []))
        return rules or []

    async def get_escalation(
        self, escalation_id: str, *, timeout: float | None = None
    ) -> dict[str, Any]:
        """Get an escalation with its tier rules."""
        return await self._data(
            f"/v2/escalations/{_segment(escalation_id)}",
            {"identifierType": "id"},
            timeout,
        ) or {}

    async def get_timeline(
        self,
        schedule_id: str,
        *,
        weeks: int,
        date: datetime,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Get the final timeline of a schedule, ``weeks`` weeks from ``date``."""
        return await self._data(
            f"/v2/schedules/{_segment(schedule_id)}/timeline",
            {
                "identifierType": "id",
                "interval": weeks,
                "intervalUnit": "weeks",
                "date": date.isoformat(timespec="seconds"),
            },
            timeout,
        ) or {}

    async def get_user(self, user_id: str, *, timeout: float | None = None) -> dict[str, Any]:
        """Get a user profile, including custom ``details``."""
        return await self._data(f"/v2/users/{_segment(user_id)}", {}, timeout) or {}

    async def list_alerts(
        self,
        query: str,
        *,
        limit: int = 20,
        sort: str = "createdAt",
        order: str = "desc",
        timeout: float | None = None,
    ) -> list[dict[str, Any]]:
        """Search alerts with an OpsGenie query string."""
        if not 1 <= limit <= MAX_ALERT_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_ALERT_LIMIT}, got {limit}")
        alerts = await self._data(
            "/v2/alerts",
            {"query": query, "limit": limit, "sort": sort, "order": order},
            timeout,
        )
        return alerts or []
