"""
Abstract Base Class for the upstream channel statistics source.

The scheduler, fetcher and discovery loop only depend on this contract,
so tests can drive them with in-memory fakes and the YouTube Data API
client can be swapped for another provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ...models.stats import DiscoveredChannel, StatSnapshot


class StatsSourceInterface(ABC):
    """
    Abstract interface for looking up and searching channels upstream.

    Implementations should:
    - Raise ``UpstreamError`` for transport failures, timeouts, unexpected
      statuses and malformed bodies
    - Raise ``NotFoundError`` when the upstream has no such channel
    - Leave retry cadence to the caller (the batch scheduler)
    """

    @abstractmethod
    async def fetch_channel(self, channel_id: str) -> StatSnapshot:
        """
        Look up the current statistics of one channel.

        Parameters
        ----------
        channel_id : str
            Channel ID (``UC...``) or handle (``@name``).

        Returns
        -------
        StatSnapshot
            Normalized statistics without a timestamp; the caller stamps
            the snapshot when it is recorded.

        Raises
        ------
        UpstreamError
            If the lookup fails.
        NotFoundError
            If the channel does not exist upstream.
        """
        pass

    @abstractmethod
    async def search(self, query: str) -> list[DiscoveredChannel]:
        """
        Search for channels matching a free-text query.

        Raises
        ------
        UpstreamError
            If the search request fails.
        """
        pass

    async def aclose(self) -> None:
        """Release any network resources held by the source."""
        return None
