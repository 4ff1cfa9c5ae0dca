"""
Scheduling service: the seam between pure transitions and storage.

Each operation re-reads the client list, resolves the client by id right
before mutating (callers may hold stale references), applies a pure
transition and hands the fully replaced client to storage.  A missing
client is a stale-reference race, not an error: it is logged and the call
returns None.  Validation errors are raised before anything is written.
"""

import logging
from typing import Callable, Protocol

from . import lifecycle, recurrence, relocation
from .models import Client

logger = logging.getLogger(__name__)


class ClientRepository(Protocol):
    """Storage collaborator: read every client, persist one replaced client."""

    def list_clients(self) -> list[Client]: ...

    def persist_client(self, client: Client) -> None: ...


class Scheduler:
    """Runs lifecycle and relocation operations against a client repository."""

    def __init__(self, store: ClientRepository):
        self.store = store

    # -- helpers ----------------------------------------------------------

    def _resolve(self, client_id: str) -> tuple[list[Client], Client | None]:
        clients = self.store.list_clients()
        client = relocation.find_client(clients, client_id)
        if client is None:
            logger.warning("Client %s not found; operation skipped", client_id)
        return clients, client

    def _persist(self, client: Client | None) -> Client | None:
        if client is not None:
            self.store.persist_client(client)
        return client

    def _transition(
        self,
        client_id: str,
        session_id: str,
        transition: lifecycle.Transition,
    ) -> Client | None:
        _, client = self._resolve(client_id)
        if client is None:
            return None
        updated = lifecycle.apply_to_client(client, session_id, transition)
        if updated is None:
            logger.warning("Session %s not found on client %s", session_id, client_id)
        return self._persist(updated)

    # -- lifecycle ----------------------------------------------------------

    def complete(
        self,
        client_id: str,
        session_id: str,
        intensity: int,
        feedback: str | None = None,
    ) -> Client | None:
        lifecycle.validate_intensity(intensity)
        return self._transition(
            client_id, session_id, lambda s: lifecycle.complete(s, intensity, feedback)
        )

    def mark_missed(self, client_id: str, session_id: str) -> Client | None:
        return self._transition(client_id, session_id, lifecycle.mark_missed)

    def cancel(self, client_id: str, session_id: str) -> Client | None:
        return self._transition(client_id, session_id, lifecycle.cancel)

    def reschedule(
        self,
        client_id: str,
        session_id: str,
        new_date: str,
        new_time: str,
    ) -> Client | None:
        lifecycle.validate_reschedule(new_date, new_time)
        return self._transition(
            client_id, session_id, lambda s: lifecycle.reschedule(s, new_date, new_time)
        )

    def reset_to_scheduled(self, client_id: str, session_id: str) -> Client | None:
        return self._transition(client_id, session_id, lifecycle.reset_to_scheduled)

    # -- relocation ---------------------------------------------------------

    def _move(self, propose: Callable[[list[Client]], Client | None]) -> Client | None:
        return self._persist(propose(self.store.list_clients()))

    def move_to_date(self, client_id: str, session_id: str, new_date: str) -> Client | None:
        """Drag a session to another day; None when nothing changed."""
        return self._move(
            lambda clients: relocation.propose_date_move(clients, client_id, session_id, new_date)
        )

    def move_to_hour(self, client_id: str, session_id: str, hour: int) -> Client | None:
        """Drag a session to another hour of its day; None when nothing changed."""
        return self._move(
            lambda clients: relocation.propose_hour_move(clients, client_id, session_id, hour)
        )

    # -- booking ------------------------------------------------------------

    def add_session(self, client_id: str, date: str, time: str | None = None) -> Client | None:
        _, client = self._resolve(client_id)
        if client is None:
            return None
        return self._persist(recurrence.add_single_session(client, date, time))

    def toggle_date(
        self,
        client_id: str,
        date: str,
        recurring: bool = False,
        time: str | None = None,
    ) -> Client | None:
        """Calendar-picker toggle on a client's schedule (see recurrence.toggle_session_date)."""
        _, client = self._resolve(client_id)
        if client is None:
            return None
        sessions = recurrence.toggle_session_date(
            client.sessions,
            date,
            time or client.default_time_slot,
            client.expiry_date,
            recurring=recurring,
        )
        return self._persist(client.with_sessions(sessions))
