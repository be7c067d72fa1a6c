"""
Async YouTube Data API v3 client for channel statistics and discovery.

Wraps the ``channels`` and ``search`` REST endpoints with ``httpx`` and
normalizes responses into subtrack models. Every failure is mapped to
``UpstreamError`` or ``NotFoundError``; retrying is left to the batch
scheduler so one slow channel never stalls a batch.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from subtrack import __version__
from subtrack.exceptions import NotFoundError, UpstreamError
from subtrack.models.stats import DiscoveredChannel, StatSnapshot
from subtrack.services.interfaces import StatsSourceInterface

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"
_DEFAULT_TIMEOUT_SECONDS = 30.0
_DEFAULT_SEARCH_RESULTS = 25
_THUMBNAIL_PREFERENCE = ("default", "medium", "high")


def _pick_thumbnail(snippet: dict[str, Any]) -> str | None:
    """Return the smallest available thumbnail URL from a snippet."""
    thumbnails = snippet.get("thumbnails") or {}
    for key in _THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(key) or {}).get("url")
        if url:
            return str(url)
    return None


class YouTubeStatsClient(StatsSourceInterface):
    """
    Channel statistics source backed by the YouTube Data API.

    Parameters
    ----------
    api_key : str
        YouTube Data API key.
    base_url : str, optional
        API root (default: the public v3 endpoint).
    timeout : float, optional
        Per-request timeout in seconds (default: 30).
    search_max_results : int, optional
        Page size for discovery searches (default: 25).
    http_client : httpx.AsyncClient | None, optional
        Pre-built client, mainly for tests with ``httpx.MockTransport``.

    Examples
    --------
    >>> client = YouTubeStatsClient(api_key="...")
    >>> snapshot = await client.fetch_channel("UC_x5XG1OV2P6uZZ5FSM9Ttw")
    >>> snapshot.subscriber_count
    2310000
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        search_max_results: int = _DEFAULT_SEARCH_RESULTS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._search_max_results = search_max_results
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": f"subtrack/{__version__}"},
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _get_json(
        self,
        path: str,
        params: dict[str, Any],
        channel_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Issue a GET request and decode the JSON object body.

        Raises
        ------
        UpstreamError
            On transport errors, timeouts, non-200 statuses or bodies
            that are not JSON objects.
        """
        try:
            response = await self._client.get(
                path, params={**params, "key": self._api_key}
            )
        except httpx.HTTPError as e:
            raise UpstreamError(
                message=f"Request to {path} failed: {type(e).__name__}",
                channel_id=channel_id,
                original_error=e,
            ) from e

        if response.status_code != 200:
            raise UpstreamError(
                message=(
                    f"YouTube API returned status {response.status_code} "
                    f"for {path}"
                ),
                channel_id=channel_id,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(
                message=f"YouTube API returned a malformed body for {path}",
                channel_id=channel_id,
                status_code=response.status_code,
                original_error=e,
            ) from e

        if not isinstance(body, dict):
            raise UpstreamError(
                message=f"YouTube API returned an unexpected body for {path}",
                channel_id=channel_id,
                status_code=response.status_code,
            )
        return body

    async def fetch_channel(self, channel_id: str) -> StatSnapshot:
        """
        Look up a channel's title, avatar and subscriber count.

        Handles (``@name``) are resolved with ``forHandle``; anything
        else is passed as a channel ID. Hidden subscriber counts read as 0.

        Raises
        ------
        UpstreamError
            If the request fails or the item cannot be parsed.
        NotFoundError
            If the API returns no item for the ID.
        """
        params: dict[str, Any] = {"part": "snippet,statistics"}
        if channel_id.startswith("@"):
            params["forHandle"] = channel_id
        else:
            params["id"] = channel_id

        body = await self._get_json("/channels", params, channel_id=channel_id)
        items = body.get("items") or []
        if not items:
            raise NotFoundError(
                resource_type="Channel",
                identifier=channel_id,
                hint="The YouTube API returned no channel for this ID",
            )

        item = items[0]
        snippet = item.get("snippet") or {}
        statistics = item.get("statistics") or {}
        try:
            subscriber_count = int(statistics.get("subscriberCount") or 0)
        except (TypeError, ValueError) as e:
            raise UpstreamError(
                message=(
                    f"Unparseable subscriber count "
                    f"{statistics.get('subscriberCount')!r}"
                ),
                channel_id=channel_id,
                original_error=e,
            ) from e

        logger.debug(
            "Fetched %s: %s subscribers", channel_id, subscriber_count
        )
        return StatSnapshot(
            channel_id=channel_id,
            name=snippet.get("title"),
            avatar=_pick_thumbnail(snippet),
            subscriber_count=max(subscriber_count, 0),
        )

    async def search(self, query: str) -> list[DiscoveredChannel]:
        """
        Search channels by free text.

        Returns
        -------
        list[DiscoveredChannel]
            Candidates in API order. ``verified`` is always False because
            the Data API does not expose verification badges.
        """
        body = await self._get_json(
            "/search",
            {
                "part": "snippet",
                "type": "channel",
                "q": query,
                "maxResults": self._search_max_results,
            },
        )

        results: list[DiscoveredChannel] = []
        for item in body.get("items") or []:
            snippet = item.get("snippet") or {}
            channel_id = (item.get("id") or {}).get("channelId") or snippet.get(
                "channelId"
            )
            if not channel_id:
                continue
            results.append(
                DiscoveredChannel(
                    id=channel_id,
                    name=snippet.get("channelTitle") or snippet.get("title"),
                    avatar=_pick_thumbnail(snippet),
                    verified=False,
                )
            )
        return results
