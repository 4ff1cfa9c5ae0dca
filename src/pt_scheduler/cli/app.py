"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.models import Client
from ..io.client_store import ClientStore, get_default_store_path
from ..io.serializers import ValidationError
from . import views

# Shared --store-path / --json option types used across all commands
StorePathOption = Annotated[
    Optional[Path],
    typer.Option("--store-path", "-p", help="Path to clients JSON file"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="pt-scheduler",
    help="Session scheduling for personal trainers: bookings, conflicts, and business stats.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def get_store(store_path: Path | None) -> ClientStore:
    """Get client store from path or default location."""
    if store_path is None:
        store_path = get_default_store_path()
    return ClientStore(store_path)


def load_clients(store: ClientStore) -> list[Client]:
    """Read every client, exiting with an error message on a corrupt store."""
    try:
        return store.list_clients()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
