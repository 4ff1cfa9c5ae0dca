"""
Session lifecycle state machine.

    scheduled ──complete──▶ completed
        │   ──mark_missed─▶ missed
        │   ──cancel──────▶ cancelled
        ▼
    reschedule / reset_to_scheduled bring any state back to scheduled.

complete, mark_missed and cancel apply from any state, so a missed
session can still be logged as completed later.  Every transition is a pure
function Session → Session.  Going back to scheduled clears the completion
fields so a rescheduled session is fresh.
"""

from dataclasses import replace
from typing import Callable

from .config import INTENSITY_MAX, INTENSITY_MIN
from .models import (
    Client,
    SchedulingValidationError,
    Session,
    SessionStatus,
    validate_date,
    validate_time,
)

Transition = Callable[[Session], Session]


def validate_intensity(intensity: int) -> int:
    """
    Check a session intensity rating.

    Raises:
        SchedulingValidationError: If not an integer in [1, 10]
    """
    if isinstance(intensity, bool) or not isinstance(intensity, int):
        raise SchedulingValidationError(f"intensity must be an integer, got {intensity!r}")
    if not INTENSITY_MIN <= intensity <= INTENSITY_MAX:
        raise SchedulingValidationError(
            f"intensity must be between {INTENSITY_MIN} and {INTENSITY_MAX}, got {intensity}"
        )
    return intensity


def _as_scheduled(session: Session, **changes) -> Session:
    """Back to a fresh scheduled session, completion fields cleared."""
    return replace(
        session,
        status=SessionStatus.SCHEDULED,
        completed=False,
        intensity=None,
        feedback=None,
        **changes,
    )


def complete(session: Session, intensity: int, feedback: str | None = None) -> Session:
    """
    Mark a session completed with the trainer's intensity rating and notes.

    Raises:
        SchedulingValidationError: If intensity is out of range
    """
    validate_intensity(intensity)
    return replace(
        session,
        status=SessionStatus.COMPLETED,
        completed=True,
        intensity=intensity,
        feedback=feedback or None,
    )


def mark_missed(session: Session) -> Session:
    """Client did not show up; feedback fields are left alone."""
    return replace(session, status=SessionStatus.MISSED, completed=False)


def cancel(session: Session) -> Session:
    """Cancel a session; it drops out of conflict and capacity figures."""
    return replace(session, status=SessionStatus.CANCELLED, completed=False)


def validate_reschedule(new_date: str, new_time: str) -> None:
    """Reject a reschedule request with a missing or malformed date or time."""
    if not new_date or not new_time:
        raise SchedulingValidationError("Both a new date and a new time are required")
    validate_date(new_date)
    validate_time(new_time)


def reschedule(session: Session, new_date: str, new_time: str) -> Session:
    """
    Move a session to a new date and time and make it scheduled again.

    Raises:
        SchedulingValidationError: If either value is empty or malformed
    """
    validate_reschedule(new_date, new_time)
    return _as_scheduled(session, date=new_date, time=new_time)


def reset_to_scheduled(session: Session) -> Session:
    """Clear any outcome without touching date or time."""
    return _as_scheduled(session)


def apply_to_client(client: Client, session_id: str, transition: Transition) -> Client | None:
    """
    Apply *transition* to one of a client's sessions.

    Returns:
        New Client with the session replaced, or None if the id is unknown
    """
    session = client.find_session(session_id)
    if session is None:
        return None
    return client.replace_session(transition(session))
