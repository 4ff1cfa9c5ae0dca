"""
Interactive session relocation (drag-and-drop semantics).

The gesture itself lives in the host UI; here it is reduced to two pure
proposals that return the updated client, or None when nothing changes.
Dropping onto an occupied slot is allowed: it simply creates a
double-booking for the conflict detector to flag.
"""

import logging
from typing import Iterable

from .lifecycle import reschedule
from .models import Client, validate_date
from .timeslots import hour_slot

logger = logging.getLogger(__name__)


def find_client(clients: Iterable[Client], client_id: str) -> Client | None:
    """Look a client up by id in the current client set."""
    for c in clients:
        if c.id == client_id:
            return c
    return None


def _propose(
    clients: Iterable[Client],
    client_id: str,
    session_id: str,
    new_date: str | None,
    new_time: str | None,
) -> Client | None:
    client = find_client(clients, client_id)
    if client is None:
        logger.warning("Move ignored: client %s not found", client_id)
        return None
    session = client.find_session(session_id)
    if session is None:
        logger.warning("Move ignored: session %s not found on client %s", session_id, client_id)
        return None

    date = new_date if new_date is not None else session.date
    time = new_time if new_time is not None else session.time
    if date == session.date and time == session.time:
        return None

    return client.replace_session(reschedule(session, date, time))


def propose_date_move(
    clients: Iterable[Client],
    client_id: str,
    session_id: str,
    new_date: str,
) -> Client | None:
    """
    Move a session to another day, keeping its time.

    Returns:
        Updated client with the session back at scheduled, or None for a
        no-op (same date) or an unknown client/session

    Raises:
        SchedulingValidationError: If new_date is not an ISO date
    """
    validate_date(new_date)
    return _propose(clients, client_id, session_id, new_date, None)


def propose_hour_move(
    clients: Iterable[Client],
    client_id: str,
    session_id: str,
    hour: int,
) -> Client | None:
    """
    Move a session to another hour of the same day.

    The new time is ``HH:00``; minutes and any range end are discarded, so
    moving "09:30-10:30" to hour 9 is a real change to "09:00".

    Raises:
        SchedulingValidationError: If hour is outside 0-23
    """
    return _propose(clients, client_id, session_id, None, hour_slot(hour))
