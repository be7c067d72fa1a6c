"""
Channel statistics models.

Defines the snapshot record stored in the caches and history files, the
discovery search result, and the aggregate views served by the API.
Snapshots keep the camelCase on-disk keys (``channelId``, ``subscribers``)
so existing history files stay readable.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class StatSnapshot(BaseModel):
    """Latest known statistics for one channel at one point in time."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(
        ...,
        validation_alias=AliasChoices("channelId", "channel_id"),
        serialization_alias="channelId",
        description="Tracked channel ID",
    )
    name: Optional[str] = Field(default=None, description="Channel title")
    avatar: Optional[str] = Field(default=None, description="Avatar image URL")
    subscriber_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices(
            "subscribers", "subscriberCount", "subscriber_count"
        ),
        serialization_alias="subscribers",
        description="Subscriber count reported by the upstream",
    )
    timestamp: Optional[datetime] = Field(
        default=None,
        description="When the value was fetched; None for a placeholder",
    )

    @classmethod
    def placeholder(cls, channel_id: str) -> "StatSnapshot":
        """Create the default snapshot for a channel never fetched yet."""
        return cls(channel_id=channel_id)

    @property
    def is_placeholder(self) -> bool:
        """Check whether this snapshot was never filled by a fetch."""
        return self.timestamp is None

    def to_json_dict(self) -> dict[str, object]:
        """Serialize with on-disk keys and ISO timestamps."""
        return self.model_dump(mode="json", by_alias=True)


class DiscoveredChannel(BaseModel):
    """A channel candidate returned by a discovery search."""

    id: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    verified: bool = False


class ChannelPage(BaseModel):
    """One page of snapshots plus the total count before pagination."""

    channels: list[StatSnapshot]
    total: int


class GlobalStats(BaseModel):
    """Aggregate counters over all tracked channels."""

    model_config = ConfigDict(populate_by_name=True)

    total_channels: int = Field(..., serialization_alias="totalChannels")
    total_subscribers: int = Field(..., serialization_alias="totalSubscribers")


class SweepReport(BaseModel):
    """Outcome of one full pass of the batch scheduler."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    batches: int = 0
    dispatched: int = 0
    succeeded: int = 0
    failed: int = 0
    cooling_down: int = 0
