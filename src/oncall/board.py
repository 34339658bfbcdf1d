"""
Board assembly: resolve every configured team, one after another.

This is where the failure policy lives. A team whose resolution fails is kept
on the board with its error and no data, and the remaining teams still resolve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from oncall.errors import OnCallError
from oncall.logging import bind_context
from oncall.roster.alerts import DEFAULT_ALERT_LIMIT, AlertLister
from oncall.roster.models import Alert, Escalation
from oncall.roster.resolver import RosterResolver


@dataclass
class TeamBoard:
    """Everything displayed for one team."""

    team: str
    escalation: Escalation | None = None
    alerts: list[Alert] = field(default_factory=list)
    error: OnCallError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def build_board(
    resolver: RosterResolver,
    teams: Sequence[str],
    *,
    lister: AlertLister | None = None,
    alert_limit: int = DEFAULT_ALERT_LIMIT,
) -> list[TeamBoard]:
    """
    Resolve rosters (and optionally alerts) for each team in order.

    Args:
        resolver: Roster resolver shared by all teams
        teams: Team names, in display order
        lister: Alert lister, or None to skip alerts
        alert_limit: Maximum alerts per team

    Returns:
        One TeamBoard per team, failed teams included
    """
    boards: list[TeamBoard] = []
    for team in teams:
        log = bind_context(team=team)
        board = TeamBoard(team=team)
        try:
            escalation = await resolver.resolve_schedule(team)
            alerts = await lister.list_alerts(team, alert_limit) if lister else []
        except OnCallError as exc:
            log.error("team_resolution_failed", error=str(exc), error_type=type(exc).__name__)
            board.error = exc
        else:
            board.escalation = escalation
            board.alerts = alerts
            log.info("team_resolved", tiers=len(escalation.schedules), alerts=len(alerts))
        boards.append(board)
    return boards
