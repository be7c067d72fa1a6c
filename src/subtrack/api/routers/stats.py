"""Aggregate statistics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from subtrack.api.deps import get_tracker
from subtrack.models.stats import GlobalStats
from subtrack.services.tracker import ChannelTracker

router = APIRouter()


@router.get("/stats", response_model=GlobalStats)
async def get_stats(tracker: ChannelTracker = Depends(get_tracker)) -> GlobalStats:
    """Total tracked channels and the sum of their latest subscriber counts."""
    return tracker.global_stats()
