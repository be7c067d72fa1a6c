"""
In-process registry of tracked channels and their cached state.

The registry is the single owned container for everything the scheduler,
discovery loop and API share: the ordered tracked set, both cache tiers,
failure counters and the set of registered data routes. It is created
once by ``ChannelTracker`` and handed to every component.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from subtrack.services.caches import HistoryCache, SnapshotCache
from subtrack.services.failure_tracker import FailureTracker
from subtrack.storage.channel_store import ChannelStore

logger = logging.getLogger(__name__)


class Registry:
    """
    Owned container for tracked-channel state.

    Parameters
    ----------
    store : ChannelStore
        Durable store backing the history cache.
    failures : FailureTracker
        Failure counters and cool-down policy.

    Attributes
    ----------
    snapshots : SnapshotCache
        Latest snapshot per channel.
    history : HistoryCache
        Lazily loaded full history per channel.
    failures : FailureTracker
        Consecutive failure bookkeeping.
    """

    def __init__(self, store: ChannelStore, failures: FailureTracker) -> None:
        self.snapshots = SnapshotCache()
        self.history = HistoryCache(store)
        self.failures = failures
        self._tracked: list[str] = []
        self._tracked_set: set[str] = set()
        self._routes: set[str] = set()

    def __len__(self) -> int:
        return len(self._tracked)

    def is_tracked(self, channel_id: str) -> bool:
        return channel_id in self._tracked_set

    def tracked_ids(self) -> list[str]:
        """Return a copy of the tracked set in registration order."""
        return list(self._tracked)

    def track(self, channel_id: str) -> bool:
        """
        Add a channel to the tracked set.

        Registers its data route and a placeholder snapshot so every
        tracked channel is listable before its first successful fetch.

        Returns
        -------
        bool
            True if the channel was newly added, False if already tracked.
        """
        if channel_id in self._tracked_set:
            return False
        self._tracked.append(channel_id)
        self._tracked_set.add(channel_id)
        self.register_route(channel_id)
        self.snapshots.ensure(channel_id)
        return True

    def restore(self, channel_ids: Iterable[str]) -> int:
        """Track every ID from a loaded list; returns how many were added."""
        return sum(1 for channel_id in channel_ids if self.track(channel_id))

    def register_route(self, channel_id: str) -> bool:
        """
        Register the data route for a channel. Idempotent.

        Returns
        -------
        bool
            True on first registration, False if already registered.
        """
        if channel_id in self._routes:
            return False
        self._routes.add(channel_id)
        logger.debug("Registered data route /data/%s", channel_id)
        return True

    def has_route(self, channel_id: str) -> bool:
        return channel_id in self._routes

    @property
    def route_count(self) -> int:
        return len(self._routes)
