"""
Configuration management module for subtrack.

Handles application settings, environment variables, storage locations
and scheduling parameters.
"""

from __future__ import annotations

__all__: list[str] = []
