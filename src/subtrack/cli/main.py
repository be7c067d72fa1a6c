"""
Main CLI entry point for subtrack.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.panel import Panel

from subtrack import __version__
from subtrack.api.middleware import RequestIdFilter
from subtrack.cli.commands.api import api_app
from subtrack.cli.commands.store import store_app
from subtrack.config.settings import settings

console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"

app = typer.Typer(
    name="subtrack",
    help="YouTube subscriber-count tracker",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(api_app, name="api", help="API server commands")
app.add_typer(store_app, name="store", help="Channel store commands")


def configure_logging(level: str) -> None:
    """Configure the root logger with request-ID aware formatting."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=level, handlers=[handler], force=True)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(
        Panel(
            f"[bold blue]subtrack[/bold blue] v{__version__}",
            title="Version",
            border_style="blue",
        )
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit"
    ),
) -> None:
    """
    subtrack - track YouTube channel subscriber counts over time.

    Discovers channels, polls their statistics in rate-limited batches and
    keeps a per-channel history on disk.
    """
    if version:
        console.print(f"subtrack v{__version__}")
        raise typer.Exit(code=0)

    configure_logging(settings.log_level)

    if ctx.invoked_subcommand is None:
        console.print("[yellow]Use 'subtrack --help' for available commands[/yellow]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
