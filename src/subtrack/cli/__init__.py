"""
CLI module for subtrack.

Contains the typer application and its subcommands.
"""

from __future__ import annotations

__all__: list[str] = []
