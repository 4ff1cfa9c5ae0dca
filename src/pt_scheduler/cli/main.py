"""
CLI entry point using Typer.

Provides commands for session scheduling:
- schedule / conflicts: list sessions and double-bookings
- complete / miss / cancel / reset: lifecycle changes
- reschedule / move: change a session's slot
- toggle-date: book or un-book dates on a client's calendar
- stats / revenue / renewals / reminders: derived business figures
- export-ics / calendar-link: calendar export
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app
from .commands import analysis, export, sessions  # noqa: F401  (register commands)


def configure_logging(verbose: bool = False) -> None:
    """Route engine log records through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.err_console, show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """
    Personal-trainer session scheduler. Run without a command for interactive mode.
    """
    configure_logging(verbose)

    if ctx.invoked_subcommand is not None:
        return  # a sub-command handles its own output

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]pt-scheduler[/bold cyan]: personal training sessions")
    views.console.print()

    menu = {
        "1": ("schedule",  "Show upcoming sessions"),
        "2": ("conflicts", "Show double-bookings"),
        "3": ("stats",     "Business stats"),
        "4": ("revenue",   "Monthly revenue"),
        "5": ("renewals",  "Renewals due"),
        "0": ("quit",      "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    commands = {
        "schedule": sessions.schedule,
        "conflicts": sessions.conflicts,
        "stats": analysis.stats,
        "revenue": analysis.revenue,
        "renewals": analysis.renewals,
    }
    chosen = menu.get(choice, (None,))[0]
    if chosen not in commands:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    ctx.invoke(commands[chosen])
