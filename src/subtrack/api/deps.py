"""FastAPI dependencies for API endpoints."""

from __future__ import annotations

from fastapi import Request

from subtrack.services.tracker import ChannelTracker


def get_tracker(request: Request) -> ChannelTracker:
    """
    Dependency returning the application's ``ChannelTracker``.

    The tracker is created by the application lifespan and stored on
    ``app.state``. Tests replace this dependency through
    ``app.dependency_overrides``.

    Raises
    ------
    RuntimeError
        If the lifespan has not set up a tracker.
    """
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise RuntimeError("ChannelTracker is not initialized")
    return tracker
