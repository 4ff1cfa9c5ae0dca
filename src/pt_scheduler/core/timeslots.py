"""
Time-slot parsing.

A session's ``time`` is either ``HH:MM`` or a range ``HH:MM-HH:MM``.  The
start component decides the hour bucket used for calendar placement; the
range, when present and sane, decides the booked duration.
"""

import logging
from datetime import datetime, timedelta

from .config import DATE_FORMAT, DEFAULT_SESSION_MINUTES
from .models import SchedulingValidationError, Session

logger = logging.getLogger(__name__)


def _minutes_of_day(hhmm: str) -> int:
    """Parse ``HH:MM`` into minutes after midnight; raises ValueError."""
    hour_str, minute_str = hhmm.strip().split(":")
    hour, minute = int(hour_str), int(minute_str)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"out of range: {hhmm}")
    return hour * 60 + minute


def start_hour(time_str: str) -> int:
    """Hour bucket of a time slot, e.g. ``"07:30-08:30"`` → 7."""
    return int(time_str.split("-")[0].split(":")[0])


def start_minutes(time_str: str) -> int:
    """Start of the slot in minutes after midnight."""
    return _minutes_of_day(time_str.split("-")[0])


def end_minutes(time_str: str) -> int | None:
    """
    End of the slot in minutes after midnight, or None when no usable end exists.

    A range whose end is unparsable or not after its start has no end.
    """
    if "-" not in time_str:
        return None
    start_str, end_str = time_str.split("-", 1)
    try:
        start, end = _minutes_of_day(start_str), _minutes_of_day(end_str)
    except ValueError:
        logger.debug("Unparsable time range %r", time_str)
        return None
    return end if end > start else None


def duration_minutes(time_str: str, default: int = DEFAULT_SESSION_MINUTES) -> int:
    """
    Booked minutes for a time slot.

    Derived from the range start/end when present; falls back to *default*
    for a single start time or any malformed/non-positive range.
    """
    try:
        start = start_minutes(time_str)
    except ValueError:
        logger.debug("Unparsable time slot %r, using %d minutes", time_str, default)
        return default
    end = end_minutes(time_str)
    if end is None:
        return default
    return end - start


def hour_slot(hour: int) -> str:
    """
    Format an hour bucket as a slot start (``9`` → ``"09:00"``).

    Raises:
        SchedulingValidationError: If hour is outside 0-23
    """
    if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
        raise SchedulingValidationError(f"hour must be an integer 0-23, got {hour!r}")
    return f"{hour:02d}:00"


def session_start(session: Session) -> datetime:
    """Naive local start datetime of a session."""
    day = datetime.strptime(session.date, DATE_FORMAT)
    return day + timedelta(minutes=start_minutes(session.time))


def session_end(session: Session) -> datetime:
    """
    Naive local end datetime of a session.

    Uses the range end when present, otherwise assumes one hour.
    """
    day = datetime.strptime(session.date, DATE_FORMAT)
    end = end_minutes(session.time)
    if end is None:
        return session_start(session) + timedelta(hours=1)
    return day + timedelta(minutes=end)
