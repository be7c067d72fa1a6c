"""CLI commands for API server management."""

from __future__ import annotations

from typing import Optional

import typer

from subtrack.config.settings import settings

api_app = typer.Typer(
    name="api",
    help="API server management commands",
    no_args_is_help=True,
)


@api_app.command()
def start(
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Port to run the server on"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    reload: bool = typer.Option(
        False, "--reload", help="Restart on code changes (development)"
    ),
) -> None:
    """
    Start the subtrack API server.

    Host and port default to the API_HOST and API_PORT settings.

    Examples:
        subtrack api start
        subtrack api start --port 3000
        subtrack api start --host 0.0.0.0 --reload
    """
    import uvicorn

    uvicorn.run(
        "subtrack.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )
