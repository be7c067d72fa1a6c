"""Channel API request and response schemas.

Snapshots are served with their on-disk keys (``channelId``,
``subscribers``) so the dashboard and history files share one format.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from subtrack.models.stats import DiscoveredChannel, StatSnapshot


class AddChannelRequest(BaseModel):
    """Body of ``POST /channels``.

    ``id`` is optional at the schema level so a missing ID is reported as
    a 400 by the tracker rather than a 422 by FastAPI.
    """

    id: Optional[str] = Field(None, description="Channel ID or @handle")


class AddChannelResponse(BaseModel):
    """Result of tracking a new channel."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    channel_id: str = Field(..., description="Normalized channel ID")
    route: str = Field(..., description="Per-channel data route")


class ChannelListResponse(BaseModel):
    """One page of latest snapshots."""

    channels: list[StatSnapshot]
    total: int = Field(..., description="Matching channels before pagination")


class ForceUpdateResponse(BaseModel):
    """Result of an immediate fetch."""

    success: bool = True
    snapshot: StatSnapshot


class SearchResponse(BaseModel):
    """Channels found by an upstream search."""

    results: list[DiscoveredChannel]
