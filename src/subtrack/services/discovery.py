"""
Randomized channel discovery.

Every tick searches the upstream with a short random query and starts
tracking every channel it has not seen before. All additions from one
search are persisted with a single coalesced save.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from subtrack.exceptions import UpstreamError
from subtrack.models.channel_types import validate_channel_id
from subtrack.services.background import BackgroundFetches
from subtrack.services.interfaces import StatsSourceInterface
from subtrack.services.registry import Registry
from subtrack.services.save_coalescer import SaveCoalescer

logger = logging.getLogger(__name__)

QUERY_ALPHABET = "abcdefghijklmnopqrstuvwxyz@!1234567890"
MAX_NAME_LENGTH = 60
QUERY_LENGTH = 3


def random_query(rng: random.Random) -> str:
    """
    Build a short random search query.

    A random name of 1 to 60 characters is drawn and cut to its first
    three characters, so short queries are slightly more likely.
    """
    length = rng.randint(1, MAX_NAME_LENGTH)
    name = "".join(rng.choice(QUERY_ALPHABET) for _ in range(length))
    return name[:QUERY_LENGTH]


class DiscoveryLoop:
    """
    Register channels found by random searches.

    Parameters
    ----------
    source : StatsSourceInterface
        Upstream search provider.
    registry : Registry
        Shared tracked-channel state.
    background : BackgroundFetches
        Runner for best-effort initial fetches.
    coalescer : SaveCoalescer
        Persists the tracked set.
    rng : random.Random | None, optional
        Random source for queries (default: a fresh ``random.Random``).
    """

    def __init__(
        self,
        source: StatsSourceInterface,
        registry: Registry,
        background: BackgroundFetches,
        coalescer: SaveCoalescer,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._source = source
        self._registry = registry
        self._background = background
        self._coalescer = coalescer
        self._rng = rng or random.Random()
        self.searches = 0
        self.channels_added = 0

    async def run_once(self, query: Optional[str] = None) -> list[str]:
        """
        Run one discovery search.

        Parameters
        ----------
        query : str | None, optional
            Explicit query; a random one is generated when omitted.

        Returns
        -------
        list[str]
            Newly tracked channel IDs, in search result order.
        """
        query = query if query is not None else random_query(self._rng)
        self.searches += 1
        try:
            candidates = await self._source.search(query)
        except UpstreamError as e:
            logger.debug("Discovery search %r failed: %s", query, e.message)
            return []

        added: list[str] = []
        for candidate in candidates:
            try:
                channel_id = validate_channel_id(candidate.id)
            except (TypeError, ValueError):
                logger.debug("Ignoring unusable channel ID %r", candidate.id)
                continue
            if self._registry.track(channel_id):
                added.append(channel_id)
                self._background.spawn(channel_id)

        if added:
            await self._coalescer.request_save()
            self.channels_added += len(added)
            logger.info("Discovery %r: %d new channels", query, len(added))
        return added
