"""
Tests for the YouTube Data API client, using httpx.MockTransport.
"""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from subtrack.exceptions import NotFoundError, UpstreamError
from subtrack.services.youtube_client import YouTubeStatsClient

pytestmark = pytest.mark.asyncio

BASE_URL = "https://youtube.test/v3"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> YouTubeStatsClient:
    http_client = httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(handler)
    )
    return YouTubeStatsClient(api_key="k", http_client=http_client)


def _channel_item(subscribers: str | None = "1500") -> dict:
    statistics = {} if subscribers is None else {"subscriberCount": subscribers}
    return {
        "id": "UCabc",
        "snippet": {
            "title": "Test Channel",
            "thumbnails": {
                "high": {"url": "https://img.test/high.jpg"},
                "default": {"url": "https://img.test/default.jpg"},
            },
        },
        "statistics": statistics,
    }


class TestFetchChannel:
    """Tests for fetch_channel."""

    async def test_parses_channel(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": [_channel_item()]})

        client = _client(handler)
        snapshot = await client.fetch_channel("UCabc")
        await client.aclose()

        assert snapshot.channel_id == "UCabc"
        assert snapshot.name == "Test Channel"
        assert snapshot.avatar == "https://img.test/default.jpg"
        assert snapshot.subscriber_count == 1500
        assert snapshot.timestamp is None

        params = seen[0].url.params
        assert seen[0].url.path == "/v3/channels"
        assert params["id"] == "UCabc"
        assert params["part"] == "snippet,statistics"
        assert params["key"] == "k"

    async def test_handle_uses_for_handle(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"items": [_channel_item()]})

        client = _client(handler)
        snapshot = await client.fetch_channel("@somebody")

        assert seen[0].url.params["forHandle"] == "@somebody"
        assert "id" not in seen[0].url.params
        assert snapshot.channel_id == "@somebody"

    async def test_hidden_subscriber_count_reads_zero(self) -> None:
        client = _client(
            lambda request: httpx.Response(
                200, json={"items": [_channel_item(subscribers=None)]}
            )
        )

        snapshot = await client.fetch_channel("UCabc")

        assert snapshot.subscriber_count == 0

    async def test_empty_items_is_not_found(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"items": []}))

        with pytest.raises(NotFoundError):
            await client.fetch_channel("UCgone")

    async def test_http_error_status(self) -> None:
        client = _client(lambda request: httpx.Response(403, json={"error": {}}))

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_channel("UCabc")

        assert exc_info.value.status_code == 403
        assert exc_info.value.channel_id == "UCabc"

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        client = _client(handler)

        with pytest.raises(UpstreamError) as exc_info:
            await client.fetch_channel("UCabc")

        assert isinstance(exc_info.value.original_error, httpx.ConnectTimeout)
        assert exc_info.value.status_code is None

    async def test_malformed_body(self) -> None:
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(UpstreamError):
            await client.fetch_channel("UCabc")

    async def test_non_object_body(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=[1, 2]))

        with pytest.raises(UpstreamError):
            await client.fetch_channel("UCabc")

    async def test_unparseable_subscriber_count(self) -> None:
        client = _client(
            lambda request: httpx.Response(
                200, json={"items": [_channel_item(subscribers="lots")]}
            )
        )

        with pytest.raises(UpstreamError):
            await client.fetch_channel("UCabc")


class TestSearch:
    """Tests for search."""

    async def test_search_maps_results(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "items": [
                        {
                            "id": {"kind": "youtube#channel", "channelId": "UC1"},
                            "snippet": {
                                "channelTitle": "One",
                                "thumbnails": {"default": {"url": "https://img.test/1"}},
                            },
                        },
                        {"id": {"kind": "youtube#channel"}, "snippet": {}},
                        {
                            "id": {"channelId": "UC2"},
                            "snippet": {"title": "Two"},
                        },
                    ]
                },
            )

        client = _client(handler)
        results = await client.search("ab")

        assert [(r.id, r.name) for r in results] == [("UC1", "One"), ("UC2", "Two")]
        assert results[0].avatar == "https://img.test/1"
        assert not any(r.verified for r in results)

        params = seen[0].url.params
        assert seen[0].url.path == "/v3/search"
        assert params["q"] == "ab"
        assert params["type"] == "channel"
        assert params["maxResults"] == "25"

    async def test_search_failure(self) -> None:
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(UpstreamError):
            await client.search("ab")
