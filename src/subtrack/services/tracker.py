"""
ChannelTracker: the service facade the API and CLI talk to.

Wires the store, registry, fetcher, scheduler, discovery loop and save
coalescer together, owns the periodic tasks, and exposes the read and
write operations served over HTTP.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any, Optional

from subtrack.config.settings import Settings
from subtrack.exceptions import (
    AlreadyTrackedError,
    BadRequestError,
    NotFoundError,
    StorageError,
)
from subtrack.models.channel_types import validate_channel_id
from subtrack.models.stats import (
    ChannelPage,
    DiscoveredChannel,
    GlobalStats,
    StatSnapshot,
)
from subtrack.services.background import BackgroundFetches
from subtrack.services.discovery import DiscoveryLoop
from subtrack.services.failure_tracker import FailureTracker
from subtrack.services.fetcher import ChannelFetcher, utc_now
from subtrack.services.interfaces import StatsSourceInterface
from subtrack.services.periodic import PeriodicTask, SleepFunc
from subtrack.services.registry import Registry
from subtrack.services.save_coalescer import SaveCoalescer
from subtrack.services.scheduler import BatchScheduler
from subtrack.services.youtube_client import YouTubeStatsClient
from subtrack.storage.channel_store import ChannelStore

logger = logging.getLogger(__name__)


class ChannelTracker:
    """
    Facade over the tracking subsystem.

    Parameters
    ----------
    store : ChannelStore
        Durable storage.
    source : StatsSourceInterface
        Upstream statistics and search provider.
    batch_size : int, optional
        Channels fetched concurrently per batch (default: 5).
    batch_interval : float, optional
        Seconds between batches (default: 1.0).
    sweep_interval : float, optional
        Seconds between sweeps (default: 60.0).
    max_retries : int, optional
        Consecutive failures before a cool-down (default: 5).
    retry_delay : float, optional
        Cool-down window in seconds (default: 60.0).
    search_interval : float, optional
        Seconds between discovery searches (default: 3.0).
    cache_cleanup_interval : float, optional
        Seconds between history cache evictions (default: 900.0).
    clock, now, sleep, rng : optional
        Injectable time, sleep and random sources for tests.

    Examples
    --------
    >>> tracker = ChannelTracker.from_settings(settings)
    >>> await tracker.start()
    >>> page = tracker.list_snapshots(page=1, limit=50)
    >>> await tracker.stop()
    """

    def __init__(
        self,
        store: ChannelStore,
        source: StatsSourceInterface,
        *,
        batch_size: int = 5,
        batch_interval: float = 1.0,
        sweep_interval: float = 60.0,
        max_retries: int = 5,
        retry_delay: float = 60.0,
        search_interval: float = 3.0,
        cache_cleanup_interval: float = 15 * 60.0,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
        sleep: SleepFunc = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.source = source
        self.registry = Registry(
            store, FailureTracker(max_retries, retry_delay, clock=clock)
        )
        self.fetcher = ChannelFetcher(source, self.registry, now=now)
        self.background = BackgroundFetches(self.fetcher)
        self.coalescer = SaveCoalescer(self._persist_tracked)
        self.scheduler = BatchScheduler(
            self.registry,
            self.fetcher,
            batch_size=batch_size,
            batch_interval=batch_interval,
            sleep=sleep,
            now=now,
        )
        self.discovery = DiscoveryLoop(
            source, self.registry, self.background, self.coalescer, rng=rng
        )
        self._sweep_task = PeriodicTask(
            "sweep", sweep_interval, self.scheduler.tick, sleep=sleep, run_immediately=True
        )
        self._discovery_task = PeriodicTask(
            "discovery", search_interval, self.discovery.run_once, sleep=sleep
        )
        self._eviction_task = PeriodicTask(
            "history-eviction",
            cache_cleanup_interval,
            self.registry.history.evict_all,
            sleep=sleep,
        )
        self._loaded = False

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source: Optional[StatsSourceInterface] = None,
    ) -> "ChannelTracker":
        """Build a tracker from application settings."""
        store = ChannelStore(
            settings.data_dir,
            channels_filename=settings.channels_filename,
            backup_filename=settings.backup_filename,
        )
        if source is None:
            source = YouTubeStatsClient(
                api_key=settings.youtube_api_key,
                base_url=settings.youtube_api_base_url,
                timeout=settings.request_timeout,
                search_max_results=settings.search_max_results,
            )
        return cls(
            store,
            source,
            batch_size=settings.batch_size,
            batch_interval=settings.batch_interval,
            sweep_interval=settings.sweep_interval,
            max_retries=settings.max_retries,
            retry_delay=settings.retry_delay,
            search_interval=settings.search_interval,
            cache_cleanup_interval=settings.cache_cleanup_interval,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _persist_tracked(self) -> None:
        await self.store.save(self.registry.tracked_ids())

    async def load(self) -> int:
        """
        Load the tracked set and warm the snapshot cache from history.

        Returns
        -------
        int
            Number of tracked channels.

        Raises
        ------
        StorageCorruptionError
            If neither the channel list nor its backup is readable.
        """
        channel_ids = await self.store.load()
        self.registry.restore(channel_ids)

        warmed = 0
        for channel_id in channel_ids:
            try:
                latest = await self.store.load_latest(channel_id)
            except StorageError as e:
                logger.warning("Skipping stats for %s: %s", channel_id, e.message)
                continue
            if latest is not None:
                self.registry.snapshots.upsert(channel_id, latest)
                warmed += 1

        self._loaded = True
        logger.info(
            "Tracking %d channels (%d with recorded stats)", len(channel_ids), warmed
        )
        return len(channel_ids)

    async def start(self, *, scheduler: bool = True, discovery: bool = True) -> None:
        """Load state if needed and start the periodic tasks."""
        if not self._loaded:
            await self.load()
        if scheduler:
            self._sweep_task.start()
        if discovery:
            self._discovery_task.start()
        self._eviction_task.start()

    async def stop(self) -> None:
        """Stop periodic tasks and background fetches, then close the source."""
        for task in (self._sweep_task, self._discovery_task, self._eviction_task):
            await task.stop()
        await self.background.cancel_all()
        await self.source.aclose()

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def list_snapshots(
        self,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> ChannelPage:
        """
        Filter, sort and paginate the latest snapshots.

        Filtering is a case-insensitive substring match on channel ID or
        name; sorting is by subscriber count, highest first.

        Raises
        ------
        BadRequestError
            If ``page`` or ``limit`` is below 1.
        """
        if page < 1 or limit < 1:
            raise BadRequestError(
                message="page and limit must be positive integers",
                details={"page": page, "limit": limit},
            )

        snapshots = self.registry.snapshots.values()
        term = (search or "").strip().lower()
        if term:
            snapshots = [
                s
                for s in snapshots
                if term in s.channel_id.lower() or (s.name and term in s.name.lower())
            ]

        snapshots.sort(key=lambda s: s.subscriber_count, reverse=True)
        start = (page - 1) * limit
        return ChannelPage(channels=snapshots[start : start + limit], total=len(snapshots))

    def global_stats(self) -> GlobalStats:
        return GlobalStats(
            total_channels=len(self.registry),
            total_subscribers=sum(
                s.subscriber_count for s in self.registry.snapshots.values()
            ),
        )

    async def get_history(self, channel_id: str) -> list[StatSnapshot]:
        """
        Return a copy of a tracked channel's history.

        Raises
        ------
        NotFoundError
            If the channel is not tracked.
        """
        if not self.registry.is_tracked(channel_id):
            raise NotFoundError(resource_type="Channel", identifier=channel_id)
        return list(await self.registry.history.get(channel_id))

    async def get_route_data(self, channel_id: str) -> list[StatSnapshot]:
        """History served by the per-channel data route, if registered."""
        if not self.registry.has_route(channel_id):
            raise NotFoundError(resource_type="Data route", identifier=channel_id)
        return list(await self.registry.history.get(channel_id))

    async def search_channels(self, query: str) -> list[DiscoveredChannel]:
        """Pass a search through to the upstream; empty query -> no results."""
        if not query.strip():
            return []
        return await self.source.search(query.strip())

    def status(self) -> dict[str, Any]:
        """Operational counters for the health endpoint and CLI."""
        report = self.scheduler.last_report
        return {
            "tracked_channels": len(self.registry),
            "snapshots": len(self.registry.snapshots),
            "history_loaded": len(self.registry.history),
            "cooling_down": self.registry.failures.cooling_down_count(),
            "sweep_state": self.scheduler.state.value,
            "sweeps_completed": self.scheduler.sweeps_completed,
            "sweeps_skipped": self.scheduler.sweeps_skipped,
            "last_sweep_finished_at": report.finished_at if report else None,
            "saves_requested": self.coalescer.requests,
            "saves_written": self.coalescer.writes,
        }

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def add_channel(self, channel_id: str) -> str:
        """
        Start tracking a channel.

        The tracked set is persisted through the coalescer before this
        returns; the first fetch runs in the background.

        Returns
        -------
        str
            The normalized channel ID.

        Raises
        ------
        BadRequestError
            If the ID is missing or malformed.
        AlreadyTrackedError
            If the channel is already tracked.
        """
        try:
            normalized = validate_channel_id(channel_id)
        except (TypeError, ValueError) as e:
            raise BadRequestError(message=str(e), details={"field": "id"}) from e

        if not self.registry.track(normalized):
            raise AlreadyTrackedError(normalized)

        await self.coalescer.request_save()
        self.background.spawn(normalized)
        logger.info("Now tracking %s", normalized)
        return normalized

    async def force_update(self, channel_id: str) -> StatSnapshot:
        """
        Fetch a tracked channel immediately.

        Raises
        ------
        NotFoundError
            If the channel is not tracked, or missing upstream.
        UpstreamError
            If the upstream lookup fails.
        """
        if not self.registry.is_tracked(channel_id):
            raise NotFoundError(resource_type="Channel", identifier=channel_id)
        return await self.fetcher.fetch(channel_id)
