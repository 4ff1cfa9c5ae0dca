"""
Calendar export: ICS documents and external calendar deep links.

Timestamps are written with a ``Z`` suffix but no timezone conversion is
applied: a session at 10:00 local becomes ``T100000Z``.  This is a known
simplification; consumers that care must shift the values themselves.
"""

from datetime import datetime, timezone
from typing import Iterable
from urllib.parse import urlencode

from .config import (
    GOOGLE_CALENDAR_URL,
    ICS_PRODID,
    ICS_TIMESTAMP_FORMAT,
    ICS_UID_SUFFIX,
    SESSION_SUMMARY_TEMPLATE,
)
from .models import Client, Session
from .timeslots import session_end, session_start

CRLF = "\r\n"


class NothingToExportError(Exception):
    """Raised when an export is requested for an empty set of sessions."""


def _stamp(value: datetime) -> str:
    return value.strftime(ICS_TIMESTAMP_FORMAT)


def _escape(text: str) -> str:
    """Escape a TEXT value for ICS (RFC 5545 section 3.3.11)."""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def session_summary(client_name: str) -> str:
    return SESSION_SUMMARY_TEMPLATE.format(client_name=client_name)


def build_ics(
    entries: Iterable[tuple[str, Session]],
    generated_at: datetime | None = None,
) -> str:
    """
    Build a VCALENDAR document with one VEVENT per session.

    Args:
        entries: (client_name, session) pairs
        generated_at: DTSTAMP value (default: now, UTC)

    Returns:
        ICS text with CRLF line endings

    Raises:
        NothingToExportError: If *entries* is empty
    """
    entries = list(entries)
    if not entries:
        raise NothingToExportError("No sessions to export.")

    stamp = _stamp(generated_at or datetime.now(timezone.utc))
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODID}",
        "CALSCALE:GREGORIAN",
    ]
    for client_name, session in entries:
        lines.extend(
            [
                "BEGIN:VEVENT",
                f"UID:{session.id}{ICS_UID_SUFFIX}",
                f"DTSTAMP:{stamp}",
                f"DTSTART:{_stamp(session_start(session))}",
                f"DTEND:{_stamp(session_end(session))}",
                f"SUMMARY:{_escape(session_summary(client_name))}",
                "END:VEVENT",
            ]
        )
    lines.append("END:VCALENDAR")
    return CRLF.join(lines) + CRLF


def client_ics(
    client: Client,
    include_cancelled: bool = False,
    generated_at: datetime | None = None,
) -> str:
    """ICS document for one client's sessions, date order, cancelled ones skipped by default."""
    sessions = sorted(client.sessions, key=lambda s: (s.date, s.time))
    return build_ics(
        ((client.name, s) for s in sessions if include_cancelled or not s.is_cancelled),
        generated_at=generated_at,
    )


def google_calendar_link(
    client_name: str,
    session: Session,
    details: str | None = None,
) -> str:
    """
    URL that opens a pre-filled "new event" form in Google Calendar.

    Carries title, ``START/END`` dates and a description as URL-encoded
    query parameters.
    """
    params = {
        "action": "TEMPLATE",
        "text": session_summary(client_name),
        "dates": f"{_stamp(session_start(session))}/{_stamp(session_end(session))}",
        "details": details or f"Personal training session ({session.time})",
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"
