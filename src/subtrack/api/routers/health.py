"""Health check endpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from subtrack import __version__
from subtrack.api.deps import get_tracker
from subtrack.services.tracker import ChannelTracker


class HealthStatus(BaseModel):
    """Application health status."""

    status: str  # "healthy", "degraded"
    version: str
    tracked_channels: int
    sweep_state: str
    timestamp: datetime
    checks: dict[str, Any]


router = APIRouter()


@router.get("/health", response_model=HealthStatus)
async def health_check(
    tracker: ChannelTracker = Depends(get_tracker),
) -> HealthStatus:
    """
    Report tracker counters.

    The service is "degraded" when every tracked channel is cooling down,
    which usually means the upstream is rejecting all requests.
    """
    checks = tracker.status()
    tracked = checks["tracked_channels"]
    degraded = tracked > 0 and checks["cooling_down"] >= tracked
    return HealthStatus(
        status="degraded" if degraded else "healthy",
        version=__version__,
        tracked_channels=tracked,
        sweep_state=checks["sweep_state"],
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )
