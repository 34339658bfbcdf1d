"""
Roster resolution: team name -> escalation tiers -> on-call periods.

Remote lookups are chained routing rule -> escalation -> timeline per tier,
with an optional user profile lookup per occupant. Every call is awaited in
turn; a failure at any step aborts the whole team.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Protocol

import structlog

from oncall.clients.base import HTTPClientError
from oncall.errors import NotFoundError, RemoteCallError
from oncall.roster.models import Escalation, OnCallUser, Occupant, Period, Schedule
from oncall.roster.normalizer import normalize_delay
from oncall.roster.periods import RosterMode, build_roster

logger = structlog.get_logger()

EMPLOYEE_NUMBER_DETAIL = "employeenumber"


class RosterClient(Protocol):
    """Remote calls the resolver depends on."""

    async def list_routing_rules(self, team_name: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
        ...

    async def get_escalation(self, escalation_id: str, *, timeout: float | None = None) -> dict[str, Any]:
        ...

    async def get_timeline(
        self, schedule_id: str, *, weeks: int, date: datetime, timeout: float | None = None
    ) -> dict[str, Any]:
        ...

    async def get_user(self, user_id: str, *, timeout: float | None = None) -> dict[str, Any]:
        ...


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def remote_step(step: str, argument: str) -> Iterator[None]:
    """Attribute transport failures and malformed payloads to ``step``."""
    try:
        yield
    except HTTPClientError as exc:
        raise RemoteCallError(step, argument, exc) from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise RemoteCallError(step, argument, f"malformed response: {exc!r}") from exc


def _aware(value: str) -> datetime:
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        raise ValueError(f"timestamp without UTC offset: {value!r}")
    return moment


def _delay_amount(delay: dict[str, Any]) -> int:
    amount = delay["timeAmount"]
    if isinstance(amount, float) and amount.is_integer():
        return int(amount)
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"delay amount must be a whole number, got {amount!r}")
    return amount


def parse_periods(timeline: dict[str, Any]) -> list[Period]:
    """Flatten a timeline's rotations into periods, rotation by rotation."""
    periods: list[Period] = []
    rotations = (timeline.get("finalTimeline") or {}).get("rotations") or []
    for rotation in rotations:
        for raw in rotation.get("periods") or []:
            recipient = raw.get("recipient") or {}
            if not recipient.get("name"):
                continue
            period = Period(
                starts=_aware(raw["startDate"]),
                ends=_aware(raw["endDate"]),
                occupant=recipient["name"],
                occupant_id=recipient.get("id"),
            )
            if period.ends <= period.starts:
                logger.warning(
                    "empty_period_dropped",
                    rotation=rotation.get("name"),
                    occupant=period.occupant,
                )
                continue
            periods.append(period)
    return periods


def employee_id_from_profile(profile: dict[str, Any]) -> str | None:
    """Return the single ``employeenumber`` detail, if there is exactly one."""
    values = (profile.get("details") or {}).get(EMPLOYEE_NUMBER_DETAIL)
    if isinstance(values, list) and len(values) == 1:
        return str(values[0])
    return None


class RosterResolver:
    """Resolves a team's escalation into per-tier rosters."""

    def __init__(
        self,
        client: RosterClient,
        *,
        mode: RosterMode = RosterMode.CURRENT_NEXT,
        window_weeks: int = 3,
        enrich_users: bool = False,
        timeout: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if window_weeks < 1:
            raise ValueError(f"window_weeks must be >= 1, got {window_weeks}")
        self._client = client
        self._mode = RosterMode(mode)
        self._window_weeks = window_weeks
        self._enrich_users = enrich_users
        self._timeout = timeout
        self._clock = clock

    async def resolve_schedule(self, team: str) -> Escalation:
        """
        Resolve every escalation tier of ``team``.

        Only the team's first routing rule is followed.

        Raises:
            NotFoundError: no routing rules, or an escalation without tiers
            RemoteCallError: a remote call failed or returned garbage
            UnsupportedUnitError: a tier delay uses an unknown unit
        """
        log = logger.bind(team=team)
        now = self._clock()

        with remote_step("list routing rules", team):
            rules = await self._client.list_routing_rules(team, timeout=self._timeout)
        if not rules:
            raise NotFoundError(f"team {team!r} has no routing rules")
        if len(rules) > 1:
            log.debug("extra_routing_rules_ignored", count=len(rules) - 1)

        with remote_step("list routing rules", team):
            notify = rules[0]["notify"]
            escalation_id = notify["id"]
            if notify.get("type", "escalation") != "escalation":
                raise NotFoundError(
                    f"first routing rule of team {team!r} notifies a {notify['type']}, not an escalation"
                )

        with remote_step("get escalation", escalation_id):
            raw_escalation = await self._client.get_escalation(escalation_id, timeout=self._timeout)
            tiers = raw_escalation.get("rules") or []
        if not tiers:
            raise NotFoundError(f"escalation {escalation_id!r} of team {team!r} has no rules")

        escalation = Escalation(name=raw_escalation.get("name", ""))
        profiles: dict[str, str | None] = {}

        for tier in tiers:
            with remote_step("get escalation", escalation_id):
                recipient = tier["recipient"]
            if recipient.get("type", "schedule") != "schedule":
                log.warning(
                    "non_schedule_tier_skipped",
                    recipient_type=recipient.get("type"),
                    recipient=recipient.get("name") or recipient.get("id"),
                )
                continue

            with remote_step("get escalation", escalation_id):
                delay = tier.get("delay") or {"timeAmount": 0, "timeUnit": "minutes"}
                delay_seconds = normalize_delay(_delay_amount(delay), delay["timeUnit"])
                schedule_id = recipient["id"]

            with remote_step("get timeline", schedule_id):
                timeline = await self._client.get_timeline(
                    schedule_id,
                    weeks=self._window_weeks,
                    date=now,
                    timeout=self._timeout,
                )
                name = timeline["_parent"]["name"]
                if not name:
                    raise ValueError(f"schedule {schedule_id} has no name")
                periods = parse_periods(timeline)

            roster = build_roster(periods, now, self._mode)
            if self._enrich_users:
                await self._fetch_profiles(roster.kept, profiles)

            escalation.schedules.append(
                Schedule(
                    name=name,
                    delay=delay_seconds,
                    periods=self._occupants(roster.periods, profiles),
                    current_occupants=self._occupants(roster.current, profiles),
                    next_occupants=self._occupants(roster.next, profiles),
                )
            )
            log.debug("tier_resolved", schedule=name, delay=delay_seconds, periods=len(roster.kept))

        return escalation

    async def _fetch_profiles(self, periods: list[Period], profiles: dict[str, str | None]) -> None:
        for period in periods:
            if period.identity in profiles:
                continue
            with remote_step("get user", period.identity):
                profile = await self._client.get_user(period.identity, timeout=self._timeout)
            profiles[period.identity] = employee_id_from_profile(profile)

    def _occupants(self, periods: list[Period], profiles: dict[str, str | None]) -> list[Occupant]:
        if not self._enrich_users:
            return list(periods)
        return [OnCallUser.from_period(p, profiles.get(p.identity)) for p in periods]
