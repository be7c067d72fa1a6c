"""
Tests for randomized channel discovery.
"""

from __future__ import annotations

import random

import pytest

from subtrack.exceptions import UpstreamError
from subtrack.models.stats import DiscoveredChannel
from subtrack.services.background import BackgroundFetches
from subtrack.services.discovery import QUERY_ALPHABET, DiscoveryLoop, random_query
from subtrack.services.failure_tracker import FailureTracker
from subtrack.services.fetcher import ChannelFetcher
from subtrack.services.registry import Registry
from subtrack.services.save_coalescer import SaveCoalescer
from subtrack.storage.channel_store import ChannelStore

pytestmark = pytest.mark.asyncio


@pytest.fixture
def parts(store: ChannelStore, fake_source, step_clock):
    registry = Registry(store, FailureTracker(max_retries=5, retry_delay=60.0))
    registry.track("UCa")
    background = BackgroundFetches(ChannelFetcher(fake_source, registry, now=step_clock))
    saves: list[list[str]] = []

    async def write() -> None:
        saves.append(registry.tracked_ids())

    coalescer = SaveCoalescer(write)
    loop = DiscoveryLoop(
        fake_source, registry, background, coalescer, rng=random.Random(7)
    )
    return loop, registry, background, saves


def test_random_query_shape() -> None:
    rng = random.Random(42)

    for _ in range(200):
        query = random_query(rng)
        assert 1 <= len(query) <= 3
        assert all(c in QUERY_ALPHABET for c in query)


async def test_new_channels_tracked_and_saved_once(parts, fake_source) -> None:
    loop, registry, background, saves = parts
    fake_source.search_results = [
        DiscoveredChannel(id="UCnew1", name="One"),
        DiscoveredChannel(id="UCa", name="Known"),
        DiscoveredChannel(id="UCnew2", name="Two"),
        DiscoveredChannel(id="../bad", name="Unsafe"),
    ]

    added = await loop.run_once("abc")

    assert added == ["UCnew1", "UCnew2"]
    assert registry.tracked_ids() == ["UCa", "UCnew1", "UCnew2"]
    assert saves == [["UCa", "UCnew1", "UCnew2"]]
    assert loop.channels_added == 2

    await background.drain()
    assert sorted(fake_source.fetch_calls) == ["UCnew1", "UCnew2"]
    assert registry.snapshots.get("UCnew1").subscriber_count == 100


async def test_nothing_new_means_no_save(parts, fake_source) -> None:
    loop, _, _, saves = parts
    fake_source.search_results = [DiscoveredChannel(id="UCa")]

    assert await loop.run_once("abc") == []
    assert saves == []


async def test_search_failure_is_absorbed(parts, fake_source) -> None:
    loop, registry, _, saves = parts
    fake_source.search_error = UpstreamError("quota exceeded", status_code=403)

    assert await loop.run_once() == []
    assert registry.tracked_ids() == ["UCa"]
    assert saves == []
    assert loop.searches == 1


async def test_random_query_used_when_none_given(parts, fake_source) -> None:
    loop, _, _, _ = parts

    await loop.run_once()

    assert len(fake_source.search_calls) == 1
    assert 1 <= len(fake_source.search_calls[0]) <= 3


async def test_failed_initial_fetch_is_counted(parts, fake_source) -> None:
    loop, registry, background, _ = parts
    fake_source.search_results = [DiscoveredChannel(id="UCnew")]
    fake_source.failing.add("UCnew")

    await loop.run_once("abc")
    await background.drain()

    assert registry.is_tracked("UCnew")
    assert registry.failures.failure_count("UCnew") == 1
    assert len(background) == 0
