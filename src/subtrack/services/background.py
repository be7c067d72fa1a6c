"""
Best-effort background fetches for newly tracked channels.

Discovery and explicit adds fetch a new channel right away without
waiting for the result. Failures are not swallowed: they are logged
here and counted by the fetcher, and the next sweep retries them.
"""

from __future__ import annotations

import asyncio
import logging

from subtrack.exceptions import NotFoundError, UpstreamError
from subtrack.services.fetcher import ChannelFetcher

logger = logging.getLogger(__name__)


class BackgroundFetches:
    """Own the set of in-flight best-effort fetch tasks."""

    def __init__(self, fetcher: ChannelFetcher) -> None:
        self._fetcher = fetcher
        self._tasks: set[asyncio.Task[object]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, channel_id: str) -> asyncio.Task[object]:
        """Start a fetch for ``channel_id`` without awaiting it."""
        task: asyncio.Task[object] = asyncio.create_task(
            self._fetcher.fetch(channel_id), name=f"initial-fetch-{channel_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(channel_id, t))
        return task

    def _on_done(self, channel_id: str, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            logger.debug("Initial fetch for %s succeeded", channel_id)
        elif isinstance(error, (UpstreamError, NotFoundError)):
            logger.info(
                "Initial fetch for %s failed (%s); the scheduler will retry",
                channel_id,
                error.message,
            )
        else:
            logger.error(
                "Initial fetch for %s raised unexpectedly",
                channel_id,
                exc_info=error,
            )

    async def drain(self) -> None:
        """Wait for every in-flight fetch to settle."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
