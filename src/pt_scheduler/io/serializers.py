"""
JSON serialization for client and session models.

Handles conversion between dataclasses and the stored JSON records, which
use the camelCase keys of the trainer app's data export
(``totalFee``, ``expiryDate``, ...).

Status compatibility: older records carry only a ``completed`` boolean,
newer ones an optional ``status`` string.  Reading accepts either;
writing always emits the canonical ``status`` plus a consistent
``completed`` flag.
"""

import json
from typing import Any

from ..core.models import (
    Client,
    SchedulingValidationError,
    Session,
    SessionStatus,
)


class ValidationError(Exception):
    """Raised when a stored record cannot be turned into a model."""

    pass


# Keys owned by Client fields; anything else is carried in Client.extra
_CLIENT_KEYS = {
    "id": "id",
    "name": "name",
    "totalFee": "total_fee",
    "paidAmount": "paid_amount",
    "startDate": "start_date",
    "expiryDate": "expiry_date",
    "defaultTimeSlot": "default_time_slot",
    "email": "email",
    "phone": "phone",
    "notes": "notes",
    "createdAt": "created_at",
}


def _number(value: Any, name: str) -> float:
    """Coerce a stored numeric field; None or '' read as 0."""
    if value in (None, ""):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e


def parse_status(data: dict[str, Any]) -> tuple[SessionStatus, bool]:
    """
    Resolve the effective status of a stored session record.

    ``status`` wins when present; otherwise ``completed: true`` means
    completed and anything else means scheduled.

    Returns:
        (status, completed flag consistent with it)

    Raises:
        ValidationError: If status holds an unknown value
    """
    raw = data.get("status")
    if raw in (None, ""):
        status = SessionStatus.COMPLETED if data.get("completed") else SessionStatus.SCHEDULED
    else:
        try:
            status = SessionStatus(raw)
        except ValueError as e:
            valid = ", ".join(s.value for s in SessionStatus)
            raise ValidationError(f"Invalid status: {raw!r}. Must be one of {valid}") from e
    return status, status is SessionStatus.COMPLETED


def session_to_dict(session: Session) -> dict[str, Any]:
    """
    Convert Session to its canonical stored dict.

    Optional completion fields are omitted when unset.
    """
    status = session.effective_status
    data: dict[str, Any] = {
        "id": session.id,
        "date": session.date,
        "time": session.time,
        "status": status.value,
        "completed": status is SessionStatus.COMPLETED,
    }
    if session.intensity is not None:
        data["intensity"] = session.intensity
    if session.feedback is not None:
        data["feedback"] = session.feedback
    return data


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert a stored dict to Session, reading either status representation.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    for key in ("id", "date", "time"):
        if not data.get(key):
            raise ValidationError(f"Session record missing '{key}'")

    status, completed = parse_status(data)
    intensity = data.get("intensity")
    try:
        return Session(
            id=str(data["id"]),
            date=data["date"],
            time=data["time"],
            status=status,
            completed=completed,
            intensity=int(intensity) if intensity is not None else None,
            feedback=data.get("feedback") or None,
        )
    except (SchedulingValidationError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid session {data.get('id')!r}: {e}") from e


def client_to_dict(client: Client) -> dict[str, Any]:
    """
    Convert Client to its stored dict.

    Pass-through keys from ``extra`` are written first so typed fields
    always win.
    """
    data: dict[str, Any] = dict(client.extra)
    for key, attr in _CLIENT_KEYS.items():
        data[key] = getattr(client, attr)
    data["sessions"] = [session_to_dict(s) for s in client.sessions]
    return data


def dict_to_client(data: dict[str, Any]) -> Client:
    """
    Convert a stored dict to Client.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    if not data.get("id"):
        raise ValidationError("Client record missing 'id'")

    sessions = data.get("sessions") or []
    if not isinstance(sessions, list):
        raise ValidationError(f"Client {data['id']!r}: sessions must be a list")

    extra = {k: v for k, v in data.items() if k not in _CLIENT_KEYS and k != "sessions"}
    try:
        return Client(
            id=str(data["id"]),
            name=data.get("name") or "",
            total_fee=_number(data.get("totalFee"), "totalFee"),
            paid_amount=_number(data.get("paidAmount"), "paidAmount"),
            start_date=data.get("startDate") or "",
            expiry_date=data.get("expiryDate") or "",
            default_time_slot=data.get("defaultTimeSlot") or "",
            sessions=tuple(dict_to_session(s) for s in sessions),
            email=data.get("email") or "",
            phone=data.get("phone") or "",
            notes=data.get("notes") or "",
            created_at=data.get("createdAt") or "",
            extra=extra,
        )
    except SchedulingValidationError as e:
        raise ValidationError(f"Invalid client {data['id']!r}: {e}") from e


def clients_to_json(clients: list[Client]) -> str:
    """Serialize a client list as pretty-printed JSON."""
    return json.dumps([client_to_dict(c) for c in clients], indent=2, ensure_ascii=False)


def clients_from_payload(payload: Any) -> list[Client]:
    """
    Read clients from a decoded JSON payload.

    Accepts a bare list of client records or a document wrapping them
    under a ``clients`` key (cloud backup format).

    Raises:
        ValidationError: If the payload has neither shape or a record is invalid
    """
    if isinstance(payload, dict):
        payload = payload.get("clients", [])
    if not isinstance(payload, list):
        raise ValidationError("Expected a list of client records")

    clients = []
    for i, record in enumerate(payload):
        if not isinstance(record, dict):
            raise ValidationError(f"Client record #{i} is not an object")
        clients.append(dict_to_client(record))
    return clients
