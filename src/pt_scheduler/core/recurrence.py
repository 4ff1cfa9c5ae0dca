"""
Recurring session generation.

Expands a single day selection into a weekly series bounded by the client's
expiry date, and implements the calendar picker's toggle semantics.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable

from .config import DATE_FORMAT
from .models import Client, Session, validate_date, validate_time


def new_session_id() -> str:
    """Fresh opaque session id (unique per process, not globally guaranteed)."""
    return uuid.uuid4().hex


def new_session(date: str, time: str) -> Session:
    """A single fresh session: unset status, not completed."""
    return Session(id=new_session_id(), date=date, time=time, status=None, completed=False)


def generate_weekly_series(
    anchor_date: str,
    time_slot: str,
    expiry_date: str,
    existing_dates: Iterable[str] = (),
) -> list[Session]:
    """
    Generate one session per week from the anchor up to the expiry date.

    The candidate date advances in 7-day steps while it is on or before
    *expiry_date*.  Dates already present in *existing_dates* are skipped so
    merging the series into a client's sessions never duplicates a date.

    Args:
        anchor_date: First date of the series (YYYY-MM-DD)
        time_slot: Time string given to every generated session
        expiry_date: Last allowed date, inclusive (YYYY-MM-DD)
        existing_dates: Dates that already hold a session

    Returns:
        Generated sessions in date order; empty if the anchor is after expiry
    """
    validate_date(anchor_date)
    validate_date(expiry_date)
    validate_time(time_slot)

    skip = set(existing_dates)
    current = datetime.strptime(anchor_date, DATE_FORMAT)
    end = datetime.strptime(expiry_date, DATE_FORMAT)

    series: list[Session] = []
    while current <= end:
        date_str = current.strftime(DATE_FORMAT)
        if date_str not in skip:
            series.append(new_session(date_str, time_slot))
        current += timedelta(weeks=1)
    return series


def merge_sessions(existing: Iterable[Session], new: Iterable[Session]) -> tuple[Session, ...]:
    """
    Union of two session collections keyed by date.

    A new session whose date is already taken is dropped (idempotent union,
    not a multiset).  Existing sessions keep their order; additions follow.
    """
    merged = list(existing)
    taken = {s.date for s in merged}
    for s in new:
        if s.date in taken:
            continue
        merged.append(s)
        taken.add(s.date)
    return tuple(merged)


def toggle_session_date(
    sessions: Iterable[Session],
    date: str,
    time_slot: str,
    expiry_date: str,
    recurring: bool = False,
) -> tuple[Session, ...]:
    """
    Calendar-picker toggle for one date.

    - Date already booked: remove that date's session only, even in
      recurring mode.
    - Date free, single mode: add one session.
    - Date free, recurring mode: add the whole weekly series from that date
      to the expiry date, skipping already-booked dates.

    Turning recurrence "on" adds many sessions while un-checking a date
    removes one.  Callers rely on this asymmetry; keep it.
    """
    validate_date(date)
    current = tuple(sessions)

    if any(s.date == date for s in current):
        return tuple(s for s in current if s.date != date)

    if recurring:
        additions = generate_weekly_series(
            date, time_slot, expiry_date, existing_dates={s.date for s in current}
        )
    else:
        validate_time(time_slot)
        additions = [new_session(date, time_slot)]
    return current + tuple(additions)


def add_single_session(client: Client, date: str, time: str | None = None) -> Client:
    """Book one explicit date on a client (default slot when *time* is None)."""
    session = new_session(date, time or client.default_time_slot)
    return client.with_sessions(client.sessions + (session,))


def add_recurring_sessions(client: Client, anchor_date: str, time: str | None = None) -> Client:
    """Book a weekly series for a client from *anchor_date* to its expiry date."""
    series = generate_weekly_series(
        anchor_date,
        time or client.default_time_slot,
        client.expiry_date,
        existing_dates=client.session_dates,
    )
    return client.with_sessions(merge_sessions(client.sessions, series))


def apply_time_slot(sessions: Iterable[Session], time_slot: str) -> tuple[Session, ...]:
    """
    Give every session the client's slot and sort by date.

    Mirrors the client form's save: the picked dates all share the slot
    configured on the client.
    """
    validate_time(time_slot)
    return tuple(
        sorted((replace(s, time=time_slot) for s in sessions), key=lambda s: s.date)
    )
