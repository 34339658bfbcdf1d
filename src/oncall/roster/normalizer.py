"""
Escalation delay normalization.

OpsGenie expresses a tier delay as ``{"timeAmount": 5, "timeUnit": "minutes"}``.
We convert to seconds once, and format for display from the seconds value so
the two never disagree.
"""

from __future__ import annotations

from enum import StrEnum

from oncall.errors import UnsupportedUnitError


class DelayUnit(StrEnum):
    """Delay units accepted by escalation rules."""

    MINUTES = "minutes"
    HOURS = "hours"


SECONDS_PER_UNIT: dict[DelayUnit, int] = {
    DelayUnit.MINUTES: 60,
    DelayUnit.HOURS: 3600,
}


def parse_unit(unit: DelayUnit | str) -> DelayUnit:
    """Map a raw unit string onto ``DelayUnit``.

    Raises:
        UnsupportedUnitError: unit is not one of ``DelayUnit``
    """
    try:
        return DelayUnit(unit)
    except ValueError as exc:
        raise UnsupportedUnitError(str(unit)) from exc


def normalize_delay(amount: int, unit: DelayUnit | str) -> int:
    """
    Convert an (amount, unit) delay to seconds.

    Args:
        amount: Number of units, must be >= 0
        unit: ``minutes`` or ``hours``

    Returns:
        Delay in seconds

    Raises:
        UnsupportedUnitError: unit is not recognized
        ValueError: amount is negative
    """
    coefficient = SECONDS_PER_UNIT[parse_unit(unit)]
    if amount < 0:
        raise ValueError(f"delay amount must be >= 0, got {amount}")
    return amount * coefficient


def format_delay(seconds: int) -> str:
    """Render a normalized delay, e.g. ``"5 min"``, ``"1 h"``, ``"1 h 30 min"``."""
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours and minutes:
        return f"{hours} h {minutes} min"
    if hours:
        return f"{hours} h"
    return f"{minutes} min"
