"""
Double-booking detection.

Builds a frequency map keyed by the exact ``(date, time)`` strings of every
non-cancelled session across all clients.  A session whose key occurs more
than once is flagged.  Overlapping but differently written ranges
("10:00-11:00" vs "10:30-11:30") are deliberately not treated as conflicts.
"""

from collections import Counter
from typing import Iterable

from .models import Client, Session, SessionStatus, SessionView
from .timeslots import start_hour

ConflictKey = tuple[str, str]


def conflict_key(session: Session) -> ConflictKey:
    """Slot key of a session: its exact date and time strings."""
    return (session.date, session.time)


def count_slots(clients: Iterable[Client]) -> Counter[ConflictKey]:
    """Count non-cancelled sessions per slot key across every client."""
    counts: Counter[ConflictKey] = Counter()
    for client in clients:
        for s in client.sessions:
            if not s.is_cancelled:
                counts[conflict_key(s)] += 1
    return counts


def flag_double_bookings(
    clients: Iterable[Client],
    client_id: str | None = None,
    include_history: bool = True,
) -> list[SessionView]:
    """
    Flatten sessions into views with advisory double-booking flags.

    Counts always cover every client; *client_id* only narrows which rows
    are returned.  With ``include_history=False`` completed and cancelled
    sessions are hidden from the rows.

    Args:
        clients: Full client list
        client_id: Optional client to restrict the returned rows to
        include_history: Whether to return completed/cancelled sessions

    Returns:
        Session views sorted by time string
    """
    clients = list(clients)
    counts = count_slots(clients)

    views: list[SessionView] = []
    for client in clients:
        if client_id is not None and client.id != client_id:
            continue
        for s in client.sessions:
            status = s.effective_status
            if not include_history and status in (SessionStatus.COMPLETED, SessionStatus.CANCELLED):
                continue
            views.append(
                SessionView(
                    session=s,
                    client_id=client.id,
                    client_name=client.name,
                    start_hour=start_hour(s.time),
                    is_double_booked=not s.is_cancelled and counts[conflict_key(s)] > 1,
                )
            )

    views.sort(key=lambda v: v.session.time)
    return views


def find_conflicts(clients: Iterable[Client]) -> list[list[SessionView]]:
    """
    Group double-booked sessions by slot.

    Returns:
        One list per conflicting slot, ordered by date then time
    """
    groups: dict[ConflictKey, list[SessionView]] = {}
    for view in flag_double_bookings(clients):
        if view.is_double_booked:
            groups.setdefault(conflict_key(view.session), []).append(view)
    return [groups[key] for key in sorted(groups)]
