"""
On-call roster resolution.

Turns a team name into per-tier rosters of who is on call now and next.
"""

from oncall.roster.alerts import AlertLister
from oncall.roster.models import Alert, Escalation, OnCallUser, Period, Schedule
from oncall.roster.normalizer import DelayUnit, format_delay, normalize_delay
from oncall.roster.periods import RosterMode, build_roster, filter_active, split_current_next
from oncall.roster.resolver import RosterResolver

__all__ = [
    "Alert",
    "AlertLister",
    "DelayUnit",
    "Escalation",
    "OnCallUser",
    "Period",
    "RosterMode",
    "RosterResolver",
    "Schedule",
    "build_roster",
    "filter_active",
    "format_delay",
    "normalize_delay",
    "split_current_next",
]
