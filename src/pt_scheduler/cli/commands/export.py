"""Export commands: ICS file and external calendar link."""

from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.calendar_export import NothingToExportError, build_ics, google_calendar_link
from .. import views
from ..app import StorePathOption, app, get_store, load_clients


@app.command("export-ics")
def export_ics(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the .ics file"),
    ] = Path("sessions.ics"),
    client_id: Annotated[
        Optional[str],
        typer.Option("--client", "-c", help="Only export this client's sessions"),
    ] = None,
    upcoming_only: Annotated[
        bool,
        typer.Option("--upcoming/--all", help="Skip sessions dated before today"),
    ] = True,
    store_path: StorePathOption = None,
) -> None:
    """
    Write sessions to an iCalendar (.ics) file.

    Cancelled sessions are never exported.  Times are written as-is with a
    UTC marker; no timezone shift is applied.
    """
    clients = load_clients(get_store(store_path))
    today = date.today().isoformat()

    entries = []
    for c in clients:
        if client_id is not None and c.id != client_id:
            continue
        for s in sorted(c.sessions, key=lambda s: (s.date, s.time)):
            if s.is_cancelled or (upcoming_only and s.date < today):
                continue
            entries.append((c.name, s))

    try:
        text = build_ics(entries)
    except NothingToExportError as e:
        views.print_info(str(e))
        return

    output.write_text(text, encoding="utf-8", newline="")
    views.print_success(f"Exported {len(entries)} session(s) to {output}")


@app.command("calendar-link")
def calendar_link(
    session_id: Annotated[str, typer.Argument(help="Session ID (see 'schedule')")],
    store_path: StorePathOption = None,
) -> None:
    """
    Print a Google Calendar link that pre-fills the session as an event.
    """
    for c in load_clients(get_store(store_path)):
        session = c.find_session(session_id)
        if session is not None:
            print(google_calendar_link(c.name, session))
            return

    views.print_info(f"Session {session_id} not found.")
