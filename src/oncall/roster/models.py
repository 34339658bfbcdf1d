"""
Roster data model.

Everything here is built fresh by a single resolution call and thrown away
on the next refresh.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Period:
    """One contiguous interval with a single designated responder."""

    starts: datetime
    ends: datetime
    occupant: str
    occupant_id: str | None = None

    @property
    def identity(self) -> str:
        """Key used to tell occupants apart."""
        return self.occupant_id or self.occupant


@dataclass(frozen=True)
class OnCallUser:
    """A period enriched with the occupant's user profile."""

    name: str
    starts: datetime
    ends: datetime
    employee_id: str | None = None

    @classmethod
    def from_period(cls, period: Period, employee_id: str | None = None) -> OnCallUser:
        return cls(
            name=period.occupant,
            starts=period.starts,
            ends=period.ends,
            employee_id=employee_id,
        )


Occupant = Union[Period, OnCallUser]


@dataclass
class Schedule:
    """Roster for one escalation tier.

    ``periods`` is filled in flat mode; ``current_occupants`` and
    ``next_occupants`` in current/next mode.
    """

    name: str
    delay: int  # seconds
    periods: list[Occupant] = field(default_factory=list)
    current_occupants: list[Occupant] = field(default_factory=list)
    next_occupants: list[Occupant] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("schedule name must not be empty")
        if self.delay < 0:
            raise ValueError(f"schedule delay must be >= 0, got {self.delay}")


@dataclass
class Escalation:
    """Ordered tiers of an escalation, first tier first."""

    name: str = ""
    schedules: list[Schedule] = field(default_factory=list)


@dataclass(frozen=True)
class Alert:
    """Open alert as shown in the alerts table."""

    created: datetime
    message: str
    priority: str
    acknowledged: bool
    owner: str
    id: str = ""
    tiny_id: str = ""
