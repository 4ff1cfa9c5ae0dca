"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of schedules, conflicts and stats.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import PROJECTION_HORIZON_DAYS
from ..core.models import CapacityStats, CompletionCounts, SessionStatus, SessionView, WeekSummary

console = Console()
err_console = Console(stderr=True)  # log records, kept off stdout for --json

_STATUS_STYLE = {
    SessionStatus.SCHEDULED: "blue",
    SessionStatus.COMPLETED: "green",
    SessionStatus.MISSED: "dark_orange",
    SessionStatus.CANCELLED: "dim",
}


def _fmt_status(view: SessionView) -> str:
    status = view.session.effective_status
    text = f"[{_STATUS_STYLE[status]}]{status.value}[/{_STATUS_STYLE[status]}]"
    if view.is_double_booked:
        text += " [bold red]CONFLICT[/bold red]"
    return text


def format_schedule_table(views: list[SessionView], title: str = "Schedule") -> Table:
    """
    Create a Rich table of sessions, one row per session.

    Args:
        views: Session views (already flagged for double-bookings)
        title: Table title

    Returns:
        Rich Table object
    """
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Client")
    table.add_column("Status")
    table.add_column("Int.", justify="right")
    table.add_column("Session ID", style="dim")

    for v in sorted(views, key=lambda v: (v.session.date, v.session.time)):
        s = v.session
        table.add_row(
            s.date,
            s.time,
            v.client_name,
            _fmt_status(v),
            str(s.intensity) if s.intensity is not None else "-",
            s.id,
        )
    return table


def print_schedule(views: list[SessionView], title: str = "Schedule") -> None:
    """Print sessions as a table, or a notice when there are none."""
    if not views:
        console.print("[yellow]No sessions found for this criteria.[/yellow]")
        return
    console.print(format_schedule_table(views, title))


def print_conflicts(groups: list[list[SessionView]]) -> None:
    """Print double-booked slots, one block per slot."""
    if not groups:
        print_success("No double-bookings.")
        return
    for group in groups:
        first = group[0].session
        console.print(f"[bold red]{first.date} {first.time}[/bold red]: {len(group)} sessions")
        for v in group:
            console.print(f"  • {v.client_name}  [dim]{v.client_id}/{v.session.id}[/dim]")


def format_stats_display(
    capacity: CapacityStats,
    month_label: str,
    month_revenue: float,
    counts: CompletionCounts,
    upcoming: int,
    projected: float,
    week: WeekSummary,
    collection_rate: int,
) -> str:
    """
    Format business stats as text block.

    Returns:
        Formatted string
    """
    lines = [
        "Business pulse",
        f"- Capacity this week: {capacity.booked_hours:.1f} h booked ({capacity.percentage}%)",
        f"- Week of {week.week_start}: {week.count} sessions, "
        f"{week.completion}% done, est. revenue {week.revenue}",
        f"- Revenue {month_label}: {month_revenue:.2f}",
        f"- Sessions {month_label}: {counts.completed}/{counts.total} done, {counts.remaining} remaining",
        f"- Upcoming sessions: {upcoming}",
        f"- Projected revenue (next {PROJECTION_HORIZON_DAYS} days): {projected:.2f}",
        f"- Collection rate: {collection_rate}%",
    ]
    return "\n".join(lines)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
