"""
Period filtering and current/next bucketing.

A timeline is fetched per schedule and holds one list of periods per rotation.
Rotations are concatenated before they get here, so periods are only ordered
within a rotation, not across the whole sequence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Iterable

from oncall.roster.models import Period

MAX_OCCUPANTS = 2


class RosterMode(StrEnum):
    """How a tier's periods are shaped for display."""

    FLAT = "flat"
    CURRENT_NEXT = "current-next"


@dataclass
class Roster:
    """Output of the period engine for one tier."""

    periods: list[Period] = field(default_factory=list)
    current: list[Period] = field(default_factory=list)
    next: list[Period] = field(default_factory=list)

    @property
    def kept(self) -> list[Period]:
        """Every period that survived filtering, in output order."""
        return self.periods + self.current + self.next


def filter_active(periods: Iterable[Period], now: datetime) -> list[Period]:
    """Drop periods that ended before ``now``; keep the rest in order."""
    return [p for p in periods if not p.ends < now]


def split_current_next(periods: Iterable[Period], now: datetime) -> tuple[list[Period], list[Period]]:
    """
    Bucket periods into (current, next) occupants.

    Periods are scanned in start order. The scan stops when a third distinct
    occupant shows up, so at most two people are returned. Fragments of the
    same occupant are kept as separate entries.

    Args:
        periods: Periods for one schedule, any order across rotations
        now: Reference instant

    Returns:
        Tuple of periods already started and periods starting after ``now``
    """
    current: list[Period] = []
    upcoming: list[Period] = []
    seen: set[str] = set()

    # sorted() is stable, so same-start periods keep their rotation order
    for period in sorted(periods, key=lambda p: p.starts):
        if period.ends < now:
            continue

        if period.identity not in seen:
            if len(seen) == MAX_OCCUPANTS:
                break
            seen.add(period.identity)

        if period.starts <= now:
            current.append(period)
        else:
            upcoming.append(period)

    return current, upcoming


def build_roster(periods: Iterable[Period], now: datetime, mode: RosterMode) -> Roster:
    """Run the engine in the requested mode."""
    if RosterMode(mode) is RosterMode.FLAT:
        return Roster(periods=filter_active(periods, now))
    current, upcoming = split_current_next(periods, now)
    return Roster(current=current, next=upcoming)
