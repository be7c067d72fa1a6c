"""
CLI commands for inspecting the on-disk channel store.

``status`` reports what is on disk without modifying it; ``verify`` runs
the same load the server runs at startup, which repairs a bad primary
file from its backup.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from subtrack.config.settings import settings
from subtrack.exceptions import (
    EXIT_CODE_STORAGE_CORRUPTED,
    StorageCorruptionError,
    StorageError,
)
from subtrack.storage.channel_store import ChannelStore

console = Console()

store_app = typer.Typer(
    name="store",
    help="Inspect and verify the channel store.",
    no_args_is_help=True,
)


def _build_store() -> ChannelStore:
    """Build a ChannelStore from application settings."""
    return ChannelStore(
        settings.data_dir,
        channels_filename=settings.channels_filename,
        backup_filename=settings.backup_filename,
    )


@store_app.command(name="status")
def status() -> None:
    """Show the data directory, tracked count and history files."""
    store = _build_store()

    tracked: str
    try:
        tracked = str(len(store.peek()))
    except StorageError as e:
        tracked = f"[red]unreadable ({e.message})[/red]"

    table = Table(title="Channel store", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Data directory", str(store.data_dir))
    table.add_row("Channel list", str(store.channels_file))
    table.add_row("Tracked channels", tracked)
    table.add_row(
        "Backup",
        "[green]present[/green]" if store.backup_file.exists() else "[yellow]missing[/yellow]",
    )
    table.add_row("History files", str(store.count_history_files()))
    console.print(table)


@store_app.command(name="verify")
def verify() -> None:
    """
    Load the channel list the way the server does at startup.

    A corrupt primary file is restored from the backup. Exits with code 1
    when neither file is readable or the restore cannot be written.

    Examples:
        subtrack store verify
    """
    store = _build_store()
    try:
        channel_ids = asyncio.run(store.load())
    except StorageCorruptionError as e:
        console.print(f"[red]Channel store is corrupted: {e.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_STORAGE_CORRUPTED)
    except StorageError as e:
        console.print(f"[red]Channel store could not be loaded: {e.message}[/red]")
        raise typer.Exit(code=EXIT_CODE_STORAGE_CORRUPTED)

    console.print(f"[green]OK[/green] {len(channel_ids)} tracked channels")
