"""Analysis commands: stats, revenue history, renewals, reminders."""

import json
from datetime import date, datetime
from typing import Annotated, Optional

import typer

from ...core import aggregation
from ...core.config import REMINDER_LEAD_MINUTES, REVENUE_HISTORY_MONTHS
from ...core.models import SchedulingValidationError, validate_date
from .. import views
from ..app import JsonOption, StorePathOption, app, get_store, load_clients


def _parse_day(value: str | None) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(validate_date(value))
    except SchedulingValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def stats(
    store_path: StorePathOption = None,
    on: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Reference date (YYYY-MM-DD, default: today)"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show capacity, revenue and completion figures derived from sessions.
    """
    clients = load_clients(get_store(store_path))
    today = _parse_day(on)
    now = datetime.combine(today, datetime.now().time()) if on else datetime.now()

    cap = aggregation.capacity(clients, today)
    revenue = aggregation.monthly_revenue(clients, today.year, today.month)
    counts = aggregation.completion_counts(clients, today.year, today.month)
    upcoming = aggregation.upcoming_count(clients, now)
    projected = aggregation.projected_revenue(clients, today)
    week = aggregation.week_summary(clients, aggregation.week_bounds(today)[0])
    collection = aggregation.collection_rate(clients)
    month_label = today.strftime("%Y-%m")

    if json_out:
        print(json.dumps({
            "capacity": {"booked_hours": cap.booked_hours, "percentage": cap.percentage},
            "month": month_label,
            "monthly_revenue": round(revenue, 2),
            "sessions_total": counts.total,
            "sessions_completed": counts.completed,
            "sessions_remaining": counts.remaining,
            "upcoming_sessions": upcoming,
            "projected_revenue": round(projected, 2),
            "week": {
                "start": week.week_start,
                "revenue": week.revenue,
                "count": week.count,
                "completion": week.completion,
            },
            "collection_rate": collection,
            "status_distribution": {
                s.value: n for s, n in aggregation.status_distribution(clients).items()
            },
            "weekday_activity": aggregation.weekday_activity(clients),
        }, indent=2))
        return

    views.console.print()
    views.console.print(
        views.format_stats_display(cap, month_label, revenue, counts, upcoming, projected, week, collection)
    )
    split = aggregation.time_of_day_split(clients)
    views.console.print(f"- Morning / evening: {split.morning_pct}% / {split.evening_pct}%")
    views.console.print()


@app.command()
def revenue(
    store_path: StorePathOption = None,
    months: Annotated[
        int,
        typer.Option("--months", "-m", help="Number of months to show"),
    ] = REVENUE_HISTORY_MONTHS,
    json_out: JsonOption = False,
) -> None:
    """
    Show earned revenue per month (completed sessions only).
    """
    clients = load_clients(get_store(store_path))
    history = aggregation.monthly_revenue_history(clients, date.today(), months)

    if json_out:
        print(json.dumps([{"month": m, "revenue": round(r, 2)} for m, r in history], indent=2))
        return

    peak = max((r for _, r in history), default=0.0)
    for month, value in history:
        bar = "█" * (round(value / peak * 30) if peak > 0 else 0)
        views.console.print(f"{month}  {value:>10.2f}  [green]{bar}[/green]")


@app.command()
def renewals(
    store_path: StorePathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List clients whose package expires soon, has expired, or is nearly used up.
    """
    clients = load_clients(get_store(store_path))
    today = date.today()
    due = aggregation.expiring_clients(clients, today)

    if json_out:
        print(json.dumps([{
            "id": c.id,
            "name": c.name,
            "expiryDate": c.expiry_date,
            "sessionsLeft": aggregation.sessions_left(c),
            "standing": aggregation.client_standing(c, today),
        } for c in due], indent=2))
        return

    if not due:
        views.print_success("No renewals due.")
        return
    for c in due:
        views.console.print(
            f"{c.name}: expires {c.expiry_date}, {aggregation.sessions_left(c)} session(s) left "
            f"[dim]({aggregation.client_standing(c, today)})[/dim]"
        )


@app.command()
def reminders(
    store_path: StorePathOption = None,
    lead_minutes: Annotated[
        int,
        typer.Option("--lead", help="Minutes before start"),
    ] = REMINDER_LEAD_MINUTES,
    json_out: JsonOption = False,
) -> None:
    """
    List sessions that should trigger a "starts soon" reminder right now.

    Meant to be polled once a minute by an external notifier.
    """
    clients = load_clients(get_store(store_path))
    due = aggregation.sessions_starting_soon(clients, datetime.now(), lead_minutes)

    if json_out:
        print(json.dumps([{
            "clientName": c.name,
            "sessionId": s.id,
            "date": s.date,
            "time": s.time,
        } for c, s in due], indent=2))
        return

    for c, s in due:
        views.console.print(f"Upcoming Session: {c.name}, starts at {s.time}")
