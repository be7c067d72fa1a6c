"""Channel API endpoints.

- GET /channels - Latest snapshots with search and pagination
- POST /channels - Start tracking a channel
- GET /channels/{channel_id}/history - Full history of a channel
- POST /channels/{channel_id}/update - Fetch a channel immediately
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from subtrack.api.deps import get_tracker
from subtrack.api.routers.responses import (
    BAD_REQUEST_RESPONSE,
    CONFLICT_RESPONSE,
    GET_ITEM_ERRORS,
    STANDARD_ERRORS,
    UPSTREAM_ERROR_RESPONSE,
)
from subtrack.api.schemas.channels import (
    AddChannelRequest,
    AddChannelResponse,
    ChannelListResponse,
    ForceUpdateResponse,
)
from subtrack.models.stats import StatSnapshot
from subtrack.services.tracker import ChannelTracker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/channels",
    response_model=ChannelListResponse,
    responses={**BAD_REQUEST_RESPONSE, **STANDARD_ERRORS},
)
async def list_channels(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(50, ge=1, le=1000, description="Channels per page"),
    search: Optional[str] = Query(None, description="ID or name substring"),
    tracker: ChannelTracker = Depends(get_tracker),
) -> ChannelListResponse:
    """List latest snapshots sorted by subscriber count, highest first."""
    result = tracker.list_snapshots(page=page, limit=limit, search=search)
    return ChannelListResponse(channels=result.channels, total=result.total)


@router.post(
    "/channels",
    response_model=AddChannelResponse,
    responses={**BAD_REQUEST_RESPONSE, **CONFLICT_RESPONSE, **STANDARD_ERRORS},
)
async def add_channel(
    body: AddChannelRequest,
    tracker: ChannelTracker = Depends(get_tracker),
) -> AddChannelResponse:
    """
    Start tracking a channel.

    Returns once the tracked list is saved; the first fetch runs in the
    background and its result shows up in ``GET /channels``.
    """
    channel_id = await tracker.add_channel(body.id or "")
    return AddChannelResponse(channel_id=channel_id, route=f"/data/{channel_id}")


@router.get(
    "/channels/{channel_id}/history",
    response_model=list[StatSnapshot],
    responses=GET_ITEM_ERRORS,
)
async def get_channel_history(
    channel_id: str = Path(..., description="Tracked channel ID"),
    tracker: ChannelTracker = Depends(get_tracker),
) -> list[StatSnapshot]:
    """Return every recorded snapshot of a channel, oldest first."""
    return await tracker.get_history(channel_id)


@router.post(
    "/channels/{channel_id}/update",
    response_model=ForceUpdateResponse,
    responses={**GET_ITEM_ERRORS, **UPSTREAM_ERROR_RESPONSE},
)
async def force_update(
    channel_id: str = Path(..., description="Tracked channel ID"),
    tracker: ChannelTracker = Depends(get_tracker),
) -> ForceUpdateResponse:
    """Fetch a tracked channel now instead of waiting for the next sweep."""
    snapshot = await tracker.force_update(channel_id)
    logger.debug("Forced update of %s: %d", channel_id, snapshot.subscriber_count)
    return ForceUpdateResponse(snapshot=snapshot)
