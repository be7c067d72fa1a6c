"""
Services module for subtrack.

Contains the upstream client, the batch scheduler, the discovery loop and
the ``ChannelTracker`` facade that ties them together.
"""

from __future__ import annotations

from subtrack.services.tracker import ChannelTracker
from subtrack.services.youtube_client import YouTubeStatsClient

__all__: list[str] = ["ChannelTracker", "YouTubeStatsClient"]
