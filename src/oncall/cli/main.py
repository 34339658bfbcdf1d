"""
oncall CLI.

Usage:
    oncall [--config PATH] [--team NAME ...] [--mode {current-next,flat}]

Exit codes:
    0 - every team resolved
    1 - at least one team failed (the others are still shown)
    2 - configuration or startup error
"""

from __future__ import annotations

import argparse
import asyncio
from typing import Sequence

from oncall import __version__
from oncall.board import build_board
from oncall.cli.render import render_board
from oncall.cli.ux import error, spinner, warning
from oncall.clients.opsgenie import MAX_ALERT_LIMIT, OpsGenieClient
from oncall.config.loader import load_config
from oncall.config.settings import get_settings
from oncall.errors import ConfigError
from oncall.logging import configure_logging
from oncall.roster.alerts import AlertLister
from oncall.roster.periods import RosterMode
from oncall.roster.resolver import RosterResolver


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _alert_limit(value: str) -> int:
    number = _positive_int(value)
    if number > MAX_ALERT_LIMIT:
        raise argparse.ArgumentTypeError(f"must be at most {MAX_ALERT_LIMIT}, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oncall",
        description="Show who is on call, tier by tier, and open alerts for OpsGenie teams",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Config file (default: ~/.config/oncall/config.yml)")
    parser.add_argument(
        "--team",
        action="append",
        dest="teams",
        metavar="NAME",
        help="Team to show; repeat for several (default: teamNames from config)",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in RosterMode],
        help="Roster layout: current/next occupants or every upcoming period",
    )
    parser.add_argument("--weeks", type=_positive_int, help="Timeline window in weeks")
    parser.add_argument(
        "--enrich",
        action="store_true",
        default=None,
        help="Look up each occupant's employee number",
    )
    parser.add_argument("--no-alerts", action="store_true", help="Do not list open alerts")
    parser.add_argument("--alert-limit", type=_alert_limit, help="Maximum open alerts per team")
    parser.add_argument("--timeout", type=_positive_float, help="Deadline per remote call, in seconds")
    parser.add_argument("--log-level", help="Log level for stderr logs (default: WARNING)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        config = load_config(args.config, settings)
    except ConfigError as exc:
        error(f"Configuration error: {exc}")
        return 2

    teams = args.teams or config.team_names
    if not teams:
        error("No teams configured: set teamNames in the config file or pass --team")
        return 2

    display = config.display
    mode = RosterMode(args.mode) if args.mode else display.mode
    timeout = args.timeout or settings.http_timeout
    alert_limit = args.alert_limit or display.alert_limit
    enrich = display.enrich_users if args.enrich is None else args.enrich

    client = OpsGenieClient(config.api_key, base_url=config.api_url, timeout=timeout)
    resolver = RosterResolver(
        client,
        mode=mode,
        window_weeks=args.weeks or display.window_weeks,
        enrich_users=enrich,
        timeout=timeout,
    )
    lister = None if args.no_alerts else AlertLister(client, timeout=timeout)

    with spinner(f"Resolving on-call rosters for {len(teams)} team(s)"):
        boards = asyncio.run(build_board(resolver, teams, lister=lister, alert_limit=alert_limit))

    render_board(boards, mode, show_alerts=lister is not None)

    failed = [b.team for b in boards if not b.ok]
    if failed:
        warning(f"{len(failed)} of {len(boards)} team(s) could not be resolved: {', '.join(failed)}")
        return 1
    return 0
