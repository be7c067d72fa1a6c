"""
Service interfaces (ABCs) for the subtrack application.

These abstract base classes define contracts for service implementations,
enabling dependency injection, testing with fakes, and swappable upstreams.
"""

from .stats_source_interface import StatsSourceInterface

__all__ = ["StatsSourceInterface"]
