"""
Batch scheduler for periodic subscriber-count sweeps.

A sweep walks every tracked channel in fixed-size batches. Each batch is
dispatched concurrently and must fully settle before the scheduler
waits the inter-batch delay and moves on, which caps the upstream
request rate at roughly ``batch_size`` per ``batch_interval``. A tick
that fires while a sweep is still running is skipped, so sweeps never
overlap.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Optional

from subtrack.exceptions import NotFoundError, StorageError, UpstreamError
from subtrack.models.stats import SweepReport
from subtrack.services.fetcher import ChannelFetcher, utc_now
from subtrack.services.periodic import SleepFunc
from subtrack.services.registry import Registry

logger = logging.getLogger(__name__)


class SweepState(str, Enum):
    """Lifecycle of one sweep."""

    IDLE = "idle"
    BATCH_RUNNING = "batch_running"
    INTER_BATCH_WAIT = "inter_batch_wait"
    SWEEP_DONE = "sweep_done"


def partition(channel_ids: list[str], size: int) -> list[list[str]]:
    """Split ``channel_ids`` into consecutive batches of at most ``size``."""
    return [channel_ids[i : i + size] for i in range(0, len(channel_ids), size)]


class BatchScheduler:
    """
    Drive ``ChannelFetcher`` over the tracked set in rate-limited batches.

    Parameters
    ----------
    registry : Registry
        Shared tracked-channel state (tracked set and failure tracker).
    fetcher : ChannelFetcher
        Per-channel unit of work.
    batch_size : int
        Channels fetched concurrently per batch.
    batch_interval : float
        Seconds to wait between batches.
    sleep : SleepFunc, optional
        Sleep function for the inter-batch delay (default: ``asyncio.sleep``).
    now : Callable[[], datetime], optional
        Timestamp source for sweep reports.

    Examples
    --------
    >>> scheduler = BatchScheduler(registry, fetcher, batch_size=5, batch_interval=1.0)
    >>> report = await scheduler.tick()
    >>> report.succeeded, report.failed
    (42, 3)
    """

    def __init__(
        self,
        registry: Registry,
        fetcher: ChannelFetcher,
        batch_size: int,
        batch_interval: float,
        sleep: SleepFunc = asyncio.sleep,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._registry = registry
        self._fetcher = fetcher
        self.batch_size = batch_size
        self.batch_interval = batch_interval
        self._sleep = sleep
        self._now = now
        self._state = SweepState.IDLE
        self._sweep_running = False
        self.last_report: Optional[SweepReport] = None
        self.sweeps_completed = 0
        self.sweeps_skipped = 0

    @property
    def state(self) -> SweepState:
        return self._state

    @property
    def sweep_running(self) -> bool:
        return self._sweep_running

    async def tick(self) -> Optional[SweepReport]:
        """
        Start a sweep unless one is already running.

        Returns
        -------
        Optional[SweepReport]
            The sweep report, or None if the tick was skipped.
        """
        if self._sweep_running:
            self.sweeps_skipped += 1
            logger.warning("Previous sweep still running; skipping this tick")
            return None
        return await self.run_sweep()

    async def run_sweep(self) -> SweepReport:
        """
        Run one full sweep over the tracked set.

        Channels in cool-down are left out before batching so every
        dispatched batch is full except possibly the last.

        Raises
        ------
        RuntimeError
            If a sweep is already running.
        """
        if self._sweep_running:
            raise RuntimeError("A sweep is already running")
        self._sweep_running = True

        try:
            report = SweepReport(started_at=self._now())
            due: list[str] = []
            for channel_id in self._registry.tracked_ids():
                if self._registry.failures.is_cooling_down(channel_id):
                    report.cooling_down += 1
                else:
                    due.append(channel_id)

            for index, batch in enumerate(partition(due, self.batch_size)):
                if index:
                    self._state = SweepState.INTER_BATCH_WAIT
                    await self._sleep(self.batch_interval)

                self._state = SweepState.BATCH_RUNNING
                outcomes = await asyncio.gather(
                    *(self._fetch_one(channel_id) for channel_id in batch)
                )
                report.batches += 1
                report.dispatched += len(batch)
                report.succeeded += sum(1 for ok in outcomes if ok)
                report.failed += sum(1 for ok in outcomes if not ok)

            self._state = SweepState.SWEEP_DONE
            report.finished_at = self._now()
            self.last_report = report
            self.sweeps_completed += 1
            logger.info(
                "Sweep done: %d batches, %d ok, %d failed, %d cooling down",
                report.batches,
                report.succeeded,
                report.failed,
                report.cooling_down,
            )
            return report
        finally:
            self._state = SweepState.IDLE
            self._sweep_running = False

    async def _fetch_one(self, channel_id: str) -> bool:
        """Fetch one channel; never raises. Returns True on success."""
        try:
            await self._fetcher.fetch(channel_id)
            return True
        except (UpstreamError, NotFoundError):
            # Already counted by the fetcher; retried on the next sweep
            return False
        except StorageError as e:
            logger.error("Could not record history for %s: %s", channel_id, e.message)
            return False
        except Exception:
            logger.exception("Unexpected error fetching %s", channel_id)
            return False
