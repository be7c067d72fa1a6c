"""Per-channel data route kept for existing dashboard clients."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from subtrack.api.deps import get_tracker
from subtrack.api.routers.responses import GET_ITEM_ERRORS
from subtrack.models.stats import StatSnapshot
from subtrack.services.tracker import ChannelTracker

router = APIRouter()


@router.get(
    "/data/{channel_id}",
    response_model=list[StatSnapshot],
    responses=GET_ITEM_ERRORS,
)
async def get_channel_data(
    channel_id: str = Path(..., description="Tracked channel ID"),
    tracker: ChannelTracker = Depends(get_tracker),
) -> list[StatSnapshot]:
    """History of a channel whose data route has been registered."""
    return await tracker.get_route_data(channel_id)
