"""
Tests for the channel endpoints.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient

from subtrack.models.stats import StatSnapshot
from subtrack.services.tracker import ChannelTracker

pytestmark = pytest.mark.asyncio


def _seed(tracker: ChannelTracker, channel_id: str, count: int, name: str) -> None:
    tracker.registry.track(channel_id)
    tracker.registry.snapshots.upsert(
        channel_id,
        StatSnapshot(
            channel_id=channel_id,
            name=name,
            subscriber_count=count,
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ),
    )


class TestListChannels:
    """Tests for GET /api/v1/channels."""

    async def test_lists_sorted_with_wire_keys(
        self, async_client: AsyncClient, api_tracker: ChannelTracker
    ) -> None:
        _seed(api_tracker, "UCsmall", 10, "Small")
        _seed(api_tracker, "UCbig", 1000, "Big")

        response = await async_client.get("/api/v1/channels")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [c["channelId"] for c in data["channels"]] == ["UCbig", "UCsmall"]
        assert data["channels"][0]["subscribers"] == 1000
        assert data["channels"][0]["name"] == "Big"

    async def test_search_and_paging(
        self, async_client: AsyncClient, api_tracker: ChannelTracker
    ) -> None:
        for i in range(4):
            _seed(api_tracker, f"UCgame{i}", i, f"Gaming {i}")
        _seed(api_tracker, "UCcook", 99, "Cooking")

        response = await async_client.get(
            "/api/v1/channels", params={"search": "GAM", "page": 2, "limit": 3}
        )

        data = response.json()
        assert data["total"] == 4
        assert [c["channelId"] for c in data["channels"]] == ["UCgame0"]

    async def test_invalid_page_is_422(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/v1/channels", params={"page": 0})

        assert response.status_code == 422
        assert response.headers["content-type"] == "application/problem+json"
        assert response.json()["code"] == "VALIDATION_ERROR"


class TestAddChannel:
    """Tests for POST /api/v1/channels."""

    async def test_add_channel(
        self, async_client: AsyncClient, api_tracker: ChannelTracker
    ) -> None:
        response = await async_client.post("/api/v1/channels", json={"id": "UCnew"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "channel_id": "UCnew",
            "route": "/data/UCnew",
        }
        assert api_tracker.registry.is_tracked("UCnew")

    async def test_add_twice_is_409(self, async_client: AsyncClient) -> None:
        await async_client.post("/api/v1/channels", json={"id": "UCnew"})

        response = await async_client.post("/api/v1/channels", json={"id": "UCnew"})

        assert response.status_code == 409
        data = response.json()
        assert data["code"] == "CONFLICT"
        assert data["instance"] == "/api/v1/channels"
        assert "UCnew" in data["detail"]

    @pytest.mark.parametrize("body", [{}, {"id": ""}, {"id": "bad id"}])
    async def test_invalid_id_is_400(self, async_client: AsyncClient, body: dict) -> None:
        response = await async_client.post("/api/v1/channels", json=body)

        assert response.status_code == 400
        assert response.json()["code"] == "BAD_REQUEST"


class TestHistoryAndUpdate:
    """Tests for history and forced update endpoints."""

    async def test_history_unknown_channel_is_404(
        self, async_client: AsyncClient
    ) -> None:
        response = await async_client.get("/api/v1/channels/UCnope/history")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_update_then_history(
        self, async_client: AsyncClient, api_tracker: ChannelTracker, fake_source
    ) -> None:
        api_tracker.registry.track("UCa")
        fake_source.counts["UCa"] = 321

        response = await async_client.post("/api/v1/channels/UCa/update")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["snapshot"]["channelId"] == "UCa"
        assert data["snapshot"]["subscribers"] == 321

        history = (await async_client.get("/api/v1/channels/UCa/history")).json()
        assert [h["subscribers"] for h in history] == [321]

    async def test_update_upstream_failure_is_502(
        self, async_client: AsyncClient, api_tracker: ChannelTracker, fake_source
    ) -> None:
        api_tracker.registry.track("UCa")
        fake_source.failing.add("UCa")

        response = await async_client.post("/api/v1/channels/UCa/update")

        assert response.status_code == 502
        data = response.json()
        assert data["code"] == "EXTERNAL_SERVICE_ERROR"
        assert data["detail"] == "Upstream service unavailable"

    async def test_update_untracked_is_404(self, async_client: AsyncClient) -> None:
        response = await async_client.post("/api/v1/channels/UCnope/update")

        assert response.status_code == 404
