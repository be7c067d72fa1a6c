"""Upstream channel search endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from subtrack.api.deps import get_tracker
from subtrack.api.routers.responses import STANDARD_ERRORS, UPSTREAM_ERROR_RESPONSE
from subtrack.api.schemas.channels import SearchResponse
from subtrack.services.tracker import ChannelTracker

router = APIRouter()


@router.get(
    "/search",
    response_model=SearchResponse,
    responses={**UPSTREAM_ERROR_RESPONSE, **STANDARD_ERRORS},
)
async def search_channels(
    q: str = Query("", max_length=200, description="Free-text channel query"),
    tracker: ChannelTracker = Depends(get_tracker),
) -> SearchResponse:
    """Search the upstream for channels. Results are not tracked."""
    return SearchResponse(results=await tracker.search_channels(q))
