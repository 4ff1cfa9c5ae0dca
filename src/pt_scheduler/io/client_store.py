"""
JSON-file storage for clients and their sessions.

Implements the two capabilities the scheduling engine needs from storage:
read every client, and persist one fully replaced client.
"""

import json
import logging
from pathlib import Path

from ..core.engine.config_loader import get_user_config_dir
from ..core.models import Client
from .serializers import ValidationError, clients_from_payload, clients_to_json

logger = logging.getLogger(__name__)


class ClientStore:
    """
    Manages the client list stored as one JSON document.

    The file holds a JSON array of client records, each with its sessions
    nested inside.  A document of the form ``{"clients": [...]}`` is also
    accepted on read; writes always produce the bare array.
    """

    def __init__(self, store_path: str | Path):
        """
        Initialize the client store.

        Args:
            store_path: Path to the clients JSON file
        """
        self.store_path = Path(store_path)

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self.store_path.exists()

    def init(self) -> None:
        """
        Create an empty store if it doesn't exist.

        Creates parent directories if needed.
        """
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        if not self.store_path.exists():
            self.store_path.write_text("[]\n", encoding="utf-8")

    def list_clients(self) -> list[Client]:
        """
        Load all clients.

        Returns:
            Clients in stored order; empty if the file doesn't exist yet

        Raises:
            ValidationError: If the file is not valid JSON or holds invalid records
        """
        if not self.store_path.exists():
            return []

        text = self.store_path.read_text(encoding="utf-8")
        if not text.strip():
            return []
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.store_path}: {e}") from e

        try:
            return clients_from_payload(payload)
        except ValidationError as e:
            raise ValidationError(f"Error reading {self.store_path}: {e}") from e

    def get_client(self, client_id: str) -> Client | None:
        """Return one client by id, or None."""
        for c in self.list_clients():
            if c.id == client_id:
                return c
        return None

    def persist_client(self, client: Client) -> None:
        """
        Replace the stored client with the same id, or append a new one.

        Args:
            client: Fully updated client
        """
        clients = self.list_clients()
        for i, existing in enumerate(clients):
            if existing.id == client.id:
                clients[i] = client
                break
        else:
            clients.append(client)
        self.save_clients(clients)
        logger.debug("Persisted client %s (%d sessions)", client.id, len(client.sessions))

    def save_clients(self, clients: list[Client]) -> None:
        """
        Overwrite the store with *clients*.

        Written to a temporary sibling first and renamed, so a failed write
        never leaves a half-written store behind.
        """
        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.store_path.with_suffix(self.store_path.suffix + ".tmp")
        tmp.write_text(clients_to_json(clients) + "\n", encoding="utf-8")
        tmp.replace(self.store_path)


def get_default_store_path() -> Path:
    """Default clients file: ~/.pt-scheduler/clients.json."""
    return get_user_config_dir() / "clients.json"


def get_default_store() -> ClientStore:
    """
    Get a ClientStore with the default path.

    Returns:
        ClientStore instance
    """
    return ClientStore(get_default_store_path())
