"""
Fixed-rate periodic tasks with an injectable sleep function.

Each tick runs the callback in its own task, so a slow callback never
delays the timer. Callers that must not overlap (the batch scheduler)
guard themselves; this class only keeps time and reports failures.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class PeriodicTask:
    """
    Run an async callback every ``interval`` seconds.

    Parameters
    ----------
    name : str
        Label used in logs and task names.
    interval : float
        Seconds between ticks.
    callback : Callable[[], Awaitable[Any]]
        Work to run on each tick. Exceptions are logged, never propagated.
    sleep : SleepFunc, optional
        Sleep function (default: ``asyncio.sleep``). Tests inject a
        controllable one to trigger ticks deterministically.
    run_immediately : bool, optional
        Fire one tick on start instead of waiting a full interval.

    Examples
    --------
    >>> task = PeriodicTask("sweep", 60.0, scheduler.tick, run_immediately=True)
    >>> task.start()
    >>> ...
    >>> await task.stop()
    """

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[Any]],
        sleep: SleepFunc = asyncio.sleep,
        run_immediately: bool = False,
    ) -> None:
        self.name = name
        self.interval = interval
        self._callback = callback
        self._sleep = sleep
        self._run_immediately = run_immediately
        self._loop_task: Optional[asyncio.Task[None]] = None
        self._ticks: set[asyncio.Task[None]] = set()
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def ticks_in_flight(self) -> int:
        return len(self._ticks)

    def start(self) -> None:
        """Start the timer loop. Calling it twice is a no-op."""
        if self.running:
            return
        self._loop_task = asyncio.create_task(
            self._run(), name=f"periodic-{self.name}"
        )
        logger.info("Started periodic task %s (every %.1fs)", self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the timer loop and any tick still running."""
        tasks = list(self._ticks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._loop_task = None
        self._ticks.clear()
        logger.info("Stopped periodic task %s", self.name)

    async def _run(self) -> None:
        if self._run_immediately:
            self._spawn_tick()
        while True:
            await self._sleep(self.interval)
            self._spawn_tick()

    def _spawn_tick(self) -> None:
        self.tick_count += 1
        task = asyncio.create_task(
            self._invoke(), name=f"periodic-{self.name}-{self.tick_count}"
        )
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    async def _invoke(self) -> None:
        try:
            await self._callback()
        except Exception:
            logger.exception("Periodic task %s failed", self.name)
