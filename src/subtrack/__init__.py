"""
subtrack - YouTube subscriber-count history tracker.

Discovers channels through randomized search, polls their subscriber
counts on a schedule, and keeps a durable per-channel history that is
served through a small HTTP API.
"""

from __future__ import annotations

__version__ = "0.3.0"
__author__ = "subtrack"
__email__ = "noreply@subtrack.dev"
__license__ = "AGPL-3.0-or-later"

__all__ = ["__version__", "__author__", "__email__", "__license__"]
