"""
Board renderers.

One renderer per roster mode, both reading the same resolved data model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from oncall.board import TeamBoard
from oncall.cli.ux import console, error, header, print_table
from oncall.roster.models import Alert, Occupant, OnCallUser, Schedule
from oncall.roster.normalizer import format_delay
from oncall.roster.periods import RosterMode


def email_to_name(value: str) -> str:
    """``jane.doe@example.com`` -> ``Jane Doe``."""
    local = value.split("@")[0]
    return local.replace(".", " ").title()


def format_when(moment: datetime) -> str:
    local = moment.astimezone()
    return f"{local:%a %b} {local.day} {local:%H:%M}"


def who(entry: Occupant) -> str:
    if isinstance(entry, OnCallUser):
        name = email_to_name(entry.name)
        name = f"{name} ({entry.employee_id})" if entry.employee_id else name
        return escape(name)
    return escape(email_to_name(entry.occupant))


def schedule_title(schedule: Schedule) -> str:
    return escape(f"{format_delay(schedule.delay)}: {schedule.name}")


def render_flat(schedule: Schedule) -> None:
    table = Table(title=schedule_title(schedule), title_justify="left", expand=True)
    table.add_column("On call")
    table.add_column("From", style="muted")
    table.add_column("Until", style="muted")
    for entry in schedule.periods:
        table.add_row(who(entry), format_when(entry.starts), format_when(entry.ends))
    if not schedule.periods:
        table.add_row("[muted]nobody in window[/muted]", "", "")
    console.print(table)


def render_current_next(schedule: Schedule) -> None:
    grid = Table.grid(expand=True, padding=(0, 2))
    grid.add_column(ratio=1)
    grid.add_column(ratio=1)

    now_lines = [f"{who(e)}\n[muted]now -> {format_when(e.ends)}[/muted]" for e in schedule.current_occupants]
    next_lines = [
        f"[muted]{who(e)}\n{format_when(e.starts)} -> {format_when(e.ends)}[/muted]"
        for e in schedule.next_occupants
    ]
    grid.add_row(
        "\n\n".join(now_lines) or "[muted]nobody on call now[/muted]",
        "\n\n".join(next_lines) or "[muted]nobody next in window[/muted]",
    )
    console.print(Panel(grid, title=schedule_title(schedule), title_align="left"))


RENDERERS: dict[RosterMode, Callable[[Schedule], None]] = {
    RosterMode.FLAT: render_flat,
    RosterMode.CURRENT_NEXT: render_current_next,
}


def render_alerts(alerts: Sequence[Alert]) -> None:
    rows = [
        [
            format_when(a.created),
            a.priority,
            escape(a.message),
            "yes" if a.acknowledged else "no",
            email_to_name(a.owner) if a.owner else "",
        ]
        for a in alerts
    ]
    print_table(
        f"Open alerts ({len(alerts)})",
        ["Created", "Priority", "Message", "Acked", "Owner"],
        rows,
    )


def render_board(boards: Sequence[TeamBoard], mode: RosterMode, *, show_alerts: bool = True) -> None:
    """Render each team: its tiers in order, then its open alerts."""
    render_schedule = RENDERERS[RosterMode(mode)]
    for board in boards:
        header(escape(board.team))
        if not board.ok:
            error(escape(f"{board.team}: {board.error}"))
            continue
        assert board.escalation is not None
        for schedule in board.escalation.schedules:
            render_schedule(schedule)
        if show_alerts:
            render_alerts(board.alerts)
