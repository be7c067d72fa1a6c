"""
Data models for subtrack.

Pydantic models for channel statistics snapshots, discovery results and
the aggregate views served by the API.
"""

from __future__ import annotations

from .channel_types import ChannelId, validate_channel_id
from .stats import (
    ChannelPage,
    DiscoveredChannel,
    GlobalStats,
    StatSnapshot,
    SweepReport,
)

__all__ = [
    "ChannelId",
    "ChannelPage",
    "DiscoveredChannel",
    "GlobalStats",
    "StatSnapshot",
    "SweepReport",
    "validate_channel_id",
]
