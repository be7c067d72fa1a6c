"""
Fixtures for API tests: a real ChannelTracker over a fake upstream,
injected through dependency overrides.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from subtrack.api.deps import get_tracker
from subtrack.api.main import app
from subtrack.services.tracker import ChannelTracker
from subtrack.storage.channel_store import ChannelStore


async def _never(delay: float) -> None:
    await asyncio.Event().wait()


@pytest.fixture
def api_tracker(store: ChannelStore, fake_source, step_clock) -> ChannelTracker:
    """Tracker whose periodic tasks are never started."""
    return ChannelTracker(store, fake_source, now=step_clock, sleep=_never)


@pytest.fixture
async def async_client(api_tracker: ChannelTracker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test tracker injected."""
    app.dependency_overrides[get_tracker] = lambda: api_tracker
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()
        await api_tracker.background.cancel_all()
