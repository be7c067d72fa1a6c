"""
Tests for fixed-rate periodic tasks.
"""

from __future__ import annotations

import asyncio

import pytest

from subtrack.services.periodic import PeriodicTask

pytestmark = pytest.mark.asyncio


class SteppedSleep:
    """Sleep that only returns when the test calls ``step``."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self._releases: asyncio.Queue[None] = asyncio.Queue()

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await self._releases.get()

    def step(self) -> None:
        self._releases.put_nowait(None)


async def _settle() -> None:
    for _ in range(10):
        await asyncio.sleep(0)


async def test_ticks_follow_sleep() -> None:
    sleep = SteppedSleep()
    calls = 0

    async def callback() -> None:
        nonlocal calls
        calls += 1

    task = PeriodicTask("test", 5.0, callback, sleep=sleep)
    task.start()
    await _settle()
    assert calls == 0
    assert sleep.delays == [5.0]

    sleep.step()
    await _settle()
    assert calls == 1

    sleep.step()
    await _settle()
    assert calls == 2
    assert task.tick_count == 2

    await task.stop()
    assert not task.running


async def test_run_immediately_fires_first_tick() -> None:
    sleep = SteppedSleep()
    calls = 0

    async def callback() -> None:
        nonlocal calls
        calls += 1

    task = PeriodicTask("test", 5.0, callback, sleep=sleep, run_immediately=True)
    task.start()
    await _settle()

    assert calls == 1
    await task.stop()


async def test_failing_callback_does_not_stop_timer(caplog) -> None:
    sleep = SteppedSleep()
    calls = 0

    async def callback() -> None:
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    task = PeriodicTask("flaky", 1.0, callback, sleep=sleep, run_immediately=True)
    task.start()
    await _settle()
    sleep.step()
    await _settle()

    assert calls == 2
    assert task.running
    assert "Periodic task flaky failed" in caplog.text
    await task.stop()


async def test_slow_tick_does_not_delay_timer() -> None:
    sleep = SteppedSleep()
    gate = asyncio.Event()

    async def callback() -> None:
        await gate.wait()

    task = PeriodicTask("slow", 1.0, callback, sleep=sleep, run_immediately=True)
    task.start()
    await _settle()
    sleep.step()
    await _settle()

    assert task.tick_count == 2
    assert task.ticks_in_flight == 2

    await task.stop()
    assert task.ticks_in_flight == 0


async def test_start_twice_is_noop() -> None:
    sleep = SteppedSleep()

    async def callback() -> None:
        return None

    task = PeriodicTask("once", 1.0, callback, sleep=sleep)
    task.start()
    task.start()
    await _settle()

    assert sleep.delays == [1.0]
    await task.stop()
