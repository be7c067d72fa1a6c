"""
Single-channel fetch: upstream lookup, normalization and cache update.

This is the unit of work the batch scheduler dispatches, and what the
discovery loop and the API call for out-of-band updates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from subtrack.exceptions import NotFoundError, StorageError, UpstreamError
from subtrack.models.stats import StatSnapshot
from subtrack.services.interfaces import StatsSourceInterface
from subtrack.services.registry import Registry

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class ChannelFetcher:
    """
    Fetch one channel and record the result.

    On success the snapshot cache is updated, the snapshot is appended to
    history (durably), and the channel's failure counter is cleared. On
    ``UpstreamError`` or ``NotFoundError`` the counter is incremented and
    the caches are left untouched.

    Parameters
    ----------
    source : StatsSourceInterface
        Upstream statistics source.
    registry : Registry
        Shared tracked-channel state.
    now : Callable[[], datetime], optional
        Timestamp source (default: UTC wall clock).
    """

    def __init__(
        self,
        source: StatsSourceInterface,
        registry: Registry,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._source = source
        self._registry = registry
        self._now = now

    async def fetch(self, channel_id: str) -> StatSnapshot:
        """
        Fetch and record the current statistics of a channel.

        Returns
        -------
        StatSnapshot
            The snapshot as stored in history.

        Raises
        ------
        UpstreamError
            If the upstream lookup fails.
        NotFoundError
            If the upstream has no such channel.
        StorageError
            If the history append fails (the snapshot cache is still
            updated).
        """
        try:
            fetched = await self._source.fetch_channel(channel_id)
        except (UpstreamError, NotFoundError) as e:
            failures = self._registry.failures.record_failure(channel_id)
            logger.warning(
                "Fetch failed for %s (%d in a row): %s",
                channel_id,
                failures,
                e.message,
            )
            raise

        snapshot = fetched.model_copy(
            update={"channel_id": channel_id, "timestamp": self._now()}
        )
        try:
            stored = await self._registry.history.append(channel_id, snapshot)
        except StorageError:
            # The fetched value is still the latest known count
            self._registry.snapshots.upsert(channel_id, snapshot)
            raise
        self._registry.snapshots.upsert(channel_id, stored)
        self._registry.failures.record_success(channel_id)
        return stored
