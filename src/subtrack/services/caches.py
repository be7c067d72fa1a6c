"""
Two-tier in-memory cache for channel statistics.

``SnapshotCache`` always holds the latest snapshot of every tracked
channel and backs listing, sorting and search. ``HistoryCache`` holds
full time series, loaded lazily from the store and dropped on a timer
to bound memory; the store stays authoritative so a dropped entry is
simply reloaded on next access.
"""

from __future__ import annotations

import asyncio
import logging

from subtrack.models.stats import StatSnapshot
from subtrack.storage.channel_store import ChannelStore

logger = logging.getLogger(__name__)


class SnapshotCache:
    """Latest snapshot per channel. Never evicted."""

    def __init__(self) -> None:
        self._entries: dict[str, StatSnapshot] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._entries

    def get(self, channel_id: str) -> StatSnapshot | None:
        return self._entries.get(channel_id)

    def upsert(self, channel_id: str, snapshot: StatSnapshot) -> None:
        """Store ``snapshot`` unless the cached one is strictly newer."""
        current = self._entries.get(channel_id)
        if (
            current is not None
            and current.timestamp is not None
            and snapshot.timestamp is not None
            and current.timestamp > snapshot.timestamp
        ):
            return
        self._entries[channel_id] = snapshot

    def ensure(self, channel_id: str) -> StatSnapshot:
        """Return the cached snapshot, inserting a placeholder if absent."""
        snapshot = self._entries.get(channel_id)
        if snapshot is None:
            snapshot = StatSnapshot.placeholder(channel_id)
            self._entries[channel_id] = snapshot
        return snapshot

    def values(self) -> list[StatSnapshot]:
        return list(self._entries.values())


class HistoryCache:
    """
    Lazily loaded per-channel history with timed eviction.

    Parameters
    ----------
    store : ChannelStore
        Durable store used to load on miss and to persist appends.

    Notes
    -----
    Entries are not locked per key: all callers run on one event loop.
    ``evict_all`` waits until no append is in flight, then clears the map
    without yielding, so eviction never drops a snapshot that has not
    reached disk yet. A load that straddles an eviction is discarded and
    repeated, so a pre-eviction read is never cached afterwards.
    """

    def __init__(self, store: ChannelStore) -> None:
        self._store = store
        self._entries: dict[str, list[StatSnapshot]] = {}
        self._appends_in_flight = 0
        self._idle = asyncio.Condition()
        self._generation = 0

    def __len__(self) -> int:
        return len(self._entries)

    def is_loaded(self, channel_id: str) -> bool:
        return channel_id in self._entries

    async def get(self, channel_id: str) -> list[StatSnapshot]:
        """
        Return the channel's history, loading it from the store on miss.

        The returned list is the cached object; callers must not mutate it.

        Raises
        ------
        StorageError
            If the history file cannot be read.
        """
        while True:
            series = self._entries.get(channel_id)
            if series is not None:
                return series

            generation = self._generation
            loaded = await self._store.load_history(channel_id)
            if generation == self._generation:
                # Another task may have loaded the same channel while we awaited
                return self._entries.setdefault(channel_id, loaded)
            # Evicted mid-load; the read may predate appends that reached disk
            logger.debug("History of %s evicted while loading; reloading", channel_id)

    async def append(self, channel_id: str, snapshot: StatSnapshot) -> StatSnapshot:
        """
        Append a snapshot in memory and durably.

        A snapshot older than the last entry is stamped with the last
        entry's timestamp so the series stays non-decreasing.

        Returns
        -------
        StatSnapshot
            The snapshot as stored.

        Raises
        ------
        StorageError
            If the durable append fails; the in-memory append is undone.
        """
        self._appends_in_flight += 1
        try:
            series = await self.get(channel_id)
            if series:
                last = series[-1].timestamp
                if (
                    last is not None
                    and snapshot.timestamp is not None
                    and snapshot.timestamp < last
                ):
                    snapshot = snapshot.model_copy(update={"timestamp": last})
            series.append(snapshot)
            try:
                await self._store.append_history(channel_id, snapshot)
            except Exception:
                for index in range(len(series) - 1, -1, -1):
                    if series[index] is snapshot:
                        del series[index]
                        break
                raise
            return snapshot
        finally:
            self._appends_in_flight -= 1
            if self._appends_in_flight == 0:
                async with self._idle:
                    self._idle.notify_all()

    async def evict_all(self) -> int:
        """
        Drop every in-memory series once pending appends have flushed.

        Returns
        -------
        int
            Number of series evicted.
        """
        async with self._idle:
            await self._idle.wait_for(lambda: self._appends_in_flight == 0)
            evicted = len(self._entries)
            self._entries.clear()
            self._generation += 1
        if evicted:
            logger.info("Evicted %d history series from memory", evicted)
        return evicted
