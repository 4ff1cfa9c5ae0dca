"""Session commands: schedule, conflicts, lifecycle changes, moves and bookings."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DEFAULT_INTENSITY
from ...core.conflicts import find_conflicts, flag_double_bookings
from ...core.models import Client, SchedulingValidationError, SessionView
from ...core.scheduler import Scheduler
from ...io.client_store import ClientStore
from ...io.serializers import ValidationError, session_to_dict
from .. import views
from ..app import JsonOption, StorePathOption, app, get_store, load_clients

ClientOption = Annotated[
    Optional[str],
    typer.Option("--client", "-c", help="Client ID (default: owner of the session)"),
]
SessionArg = Annotated[str, typer.Argument(help="Session ID (see 'schedule')")]


def _owner_of(store: ClientStore, session_id: str, client_id: str | None) -> str:
    """Resolve which client a session belongs to when --client is not given."""
    if client_id is not None:
        return client_id
    for c in load_clients(store):
        if c.find_session(session_id) is not None:
            return c.id
    views.print_info(f"Session {session_id} not found; nothing changed.")
    raise typer.Exit(0)


def _view_to_dict(v: SessionView) -> dict:
    data = session_to_dict(v.session)
    data.update(
        {
            "clientId": v.client_id,
            "clientName": v.client_name,
            "startHour": v.start_hour,
            "isDoubleBooked": v.is_double_booked,
        }
    )
    return data


def _report(updated: Client | None, session_id: str, message: str) -> None:
    """Print the outcome of a scheduler call; None means nothing was written."""
    if updated is None:
        views.print_info("Nothing changed.")
        return
    session = updated.find_session(session_id)
    detail = f" ({session.date} {session.time})" if session is not None else ""
    views.print_success(f"{message}: {updated.name}{detail}")


def _warn_if_double_booked(store: ClientStore, client: Client | None) -> None:
    """Advisory only: the change is already saved."""
    if client is None:
        return
    clashes = [
        v for v in flag_double_bookings(load_clients(store), client_id=client.id, include_history=False)
        if v.is_double_booked
    ]
    if clashes:
        views.print_warning(f"{len(clashes)} of {client.name}'s sessions are double-booked (see 'conflicts')")


def _run(op, *args) -> Client | None:
    try:
        return op(*args)
    except (SchedulingValidationError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command()
def schedule(
    store_path: StorePathOption = None,
    client_id: Annotated[
        Optional[str],
        typer.Option("--client", "-c", help="Only show this client's sessions"),
    ] = None,
    date_from: Annotated[
        Optional[str],
        typer.Option("--from", help="First date to show (YYYY-MM-DD)"),
    ] = None,
    date_to: Annotated[
        Optional[str],
        typer.Option("--to", help="Last date to show (YYYY-MM-DD)"),
    ] = None,
    history: Annotated[
        bool,
        typer.Option("--history/--no-history", help="Include completed and cancelled sessions"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Show booked sessions with double-booking flags.

    Conflicts are always counted across every client, even when the list
    is narrowed with --client.
    """
    clients = load_clients(get_store(store_path))
    rows = flag_double_bookings(clients, client_id=client_id, include_history=history)
    if date_from is not None:
        rows = [v for v in rows if v.session.date >= date_from]
    if date_to is not None:
        rows = [v for v in rows if v.session.date <= date_to]

    if json_out:
        print(json.dumps([_view_to_dict(v) for v in rows], indent=2))
        return

    views.print_schedule(rows)


@app.command()
def conflicts(
    store_path: StorePathOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List double-booked slots (same date and time string across clients).
    """
    groups = find_conflicts(load_clients(get_store(store_path)))

    if json_out:
        print(json.dumps([[_view_to_dict(v) for v in g] for g in groups], indent=2))
        return

    views.print_conflicts(groups)


@app.command()
def complete(
    session_id: SessionArg,
    intensity: Annotated[
        int,
        typer.Option("--intensity", "-i", help="Session intensity 1-10"),
    ] = DEFAULT_INTENSITY,
    feedback: Annotated[
        Optional[str],
        typer.Option("--feedback", "-f", help="Session feedback / notes"),
    ] = None,
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Mark a session completed with intensity and feedback.
    """
    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    updated = _run(Scheduler(store).complete, owner, session_id, intensity, feedback)
    _report(updated, session_id, "Completed")


@app.command()
def miss(
    session_id: SessionArg,
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Mark a session as missed (no-show).
    """
    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    updated = _run(Scheduler(store).mark_missed, owner, session_id)
    _report(updated, session_id, "Marked missed")


@app.command()
def cancel(
    session_id: SessionArg,
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Cancel a session.  It no longer counts for conflicts or capacity.
    """
    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    updated = _run(Scheduler(store).cancel, owner, session_id)
    _report(updated, session_id, "Cancelled")


@app.command()
def reschedule(
    session_id: SessionArg,
    date: Annotated[str, typer.Option("--date", "-d", help="New date (YYYY-MM-DD)")] = "",
    time: Annotated[str, typer.Option("--time", "-t", help="New time (HH:MM or HH:MM-HH:MM)")] = "",
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Move a session to a new date and time; it becomes scheduled again.
    """
    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    updated = _run(Scheduler(store).reschedule, owner, session_id, date, time)
    _report(updated, session_id, "Rescheduled")


@app.command()
def reset(
    session_id: SessionArg,
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Clear a completed, missed or cancelled outcome back to scheduled.
    """
    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    updated = _run(Scheduler(store).reset_to_scheduled, owner, session_id)
    _report(updated, session_id, "Reset to scheduled")


@app.command()
def move(
    session_id: SessionArg,
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Drop onto this day, keeping the time"),
    ] = None,
    hour: Annotated[
        Optional[int],
        typer.Option("--hour", "-H", help="Drop onto this hour (0-23) of the same day"),
    ] = None,
    client_id: ClientOption = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Drag-and-drop a session to another day or hour.

    Moving onto the slot the session already occupies changes nothing.
    Moving onto an occupied slot is allowed and shows up as a conflict.
    """
    if (date is None) == (hour is None):
        views.print_error("Give exactly one of --date or --hour")
        raise typer.Exit(1)

    store = get_store(store_path)
    owner = _owner_of(store, session_id, client_id)
    scheduler = Scheduler(store)
    if date is not None:
        updated = _run(scheduler.move_to_date, owner, session_id, date)
    else:
        updated = _run(scheduler.move_to_hour, owner, session_id, hour)
    _report(updated, session_id, "Moved")
    _warn_if_double_booked(store, updated)


@app.command("toggle-date")
def toggle_date(
    client_id: Annotated[str, typer.Argument(help="Client ID")],
    date: Annotated[str, typer.Argument(help="Date to toggle (YYYY-MM-DD)")],
    recurring: Annotated[
        bool,
        typer.Option("--recurring", "-r", help="Book every week from this date to the client's expiry"),
    ] = False,
    time: Annotated[
        Optional[str],
        typer.Option("--time", "-t", help="Time slot (default: client's default slot)"),
    ] = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Book or un-book a date on a client's calendar.

    A date that is already booked is removed (only that date, even with
    --recurring).  A free date is booked once, or weekly with --recurring.
    """
    store = get_store(store_path)
    before = next((c for c in load_clients(store) if c.id == client_id), None)
    updated = _run(Scheduler(store).toggle_date, client_id, date, recurring, time)
    if updated is None:
        views.print_info(f"Client {client_id} not found; nothing changed.")
        return

    delta = len(updated.sessions) - (len(before.sessions) if before is not None else 0)
    if delta < 0:
        views.print_success(f"Removed {date} from {updated.name}'s schedule")
    else:
        views.print_success(f"Booked {delta} session(s) for {updated.name}")
        _warn_if_double_booked(store, updated)
