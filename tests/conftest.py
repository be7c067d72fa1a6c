"""
Pytest configuration and fixtures for subtrack tests.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from subtrack.config.settings import Settings
from subtrack.exceptions import NotFoundError, UpstreamError
from subtrack.models.stats import DiscoveredChannel, StatSnapshot
from subtrack.services.interfaces import StatsSourceInterface
from subtrack.storage.channel_store import ChannelStore


class FakeStatsSource(StatsSourceInterface):
    """In-memory upstream with scripted counts, failures and search results."""

    def __init__(self) -> None:
        self.counts: dict[str, int] = {}
        self.failing: set[str] = set()
        self.missing: set[str] = set()
        self.search_results: list[DiscoveredChannel] = []
        self.search_error: Optional[Exception] = None
        self.fetch_calls: list[str] = []
        self.search_calls: list[str] = []
        self.gate: Optional[asyncio.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def fetch_channel(self, channel_id: str) -> StatSnapshot:
        self.fetch_calls.append(channel_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if channel_id in self.failing:
                raise UpstreamError("boom", channel_id=channel_id, status_code=503)
            if channel_id in self.missing:
                raise NotFoundError(resource_type="Channel", identifier=channel_id)
            return StatSnapshot(
                channel_id=channel_id,
                name=f"Name {channel_id}",
                avatar=f"https://img.test/{channel_id}.jpg",
                subscriber_count=self.counts.get(channel_id, 100),
            )
        finally:
            self.in_flight -= 1

    async def search(self, query: str) -> list[DiscoveredChannel]:
        self.search_calls.append(query)
        if self.search_error is not None:
            raise self.search_error
        return list(self.search_results)

    async def aclose(self) -> None:
        self.closed = True


class StepClock:
    """Monotonic datetime source advancing one second per call."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class ManualClock:
    """Monotonic float clock moved by hand."""

    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def fake_source() -> FakeStatsSource:
    """Scripted upstream source."""
    return FakeStatsSource()


@pytest.fixture
def step_clock() -> StepClock:
    """Timestamp source for fetches."""
    return StepClock()


@pytest.fixture
def manual_clock() -> ManualClock:
    """Monotonic clock for cool-down tests."""
    return ManualClock()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Empty data directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def store(data_dir: Path) -> ChannelStore:
    """Channel store rooted in a temporary directory."""
    return ChannelStore(data_dir)


@pytest.fixture
def test_settings(data_dir: Path) -> Settings:
    """Settings pointing at a temporary data directory."""
    return Settings(
        youtube_api_key="test_api_key",
        data_dir=data_dir,
        log_level="DEBUG",
        debug=False,
    )
