"""FastAPI application for the subtrack API."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from subtrack import __version__
from subtrack.api.exception_handlers import register_exception_handlers
from subtrack.api.middleware import RequestIdMiddleware
from subtrack.api.routers import channels, data, health, search, stats
from subtrack.config.settings import settings
from subtrack.exceptions import StorageCorruptionError
from subtrack.services.tracker import ChannelTracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build, load and start the tracker; stop it on shutdown.

    A corrupted channel list aborts startup instead of starting empty
    and overwriting data that may still be recoverable.
    """
    settings.create_directories()
    tracker = ChannelTracker.from_settings(settings)
    try:
        await tracker.load()
    except StorageCorruptionError as e:
        logger.critical("Refusing to start: %s", e.message)
        await tracker.source.aclose()
        raise

    await tracker.start(
        scheduler=settings.scheduler_enabled,
        discovery=settings.discovery_enabled,
    )
    app.state.tracker = tracker
    try:
        yield
    finally:
        await tracker.stop()
        app.state.tracker = None


app = FastAPI(
    title="subtrack API",
    description="Tracks YouTube channel subscriber counts over time",
    version=__version__,
    lifespan=lifespan,
)

register_exception_handlers(app)
app.add_middleware(RequestIdMiddleware)


def _get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxied requests."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


@app.middleware("http")
async def log_requests(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """
    Log each request and its response.

    The response is logged at INFO for 2xx/3xx, WARNING for 4xx and
    ERROR for 5xx, with the handling time.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    logger.debug("Request: %s %s from %s", method, path, _get_client_ip(request))
    response = await call_next(request)

    duration = time.perf_counter() - start_time
    status_code = response.status_code
    if status_code >= 500:
        log_level = logging.ERROR
    elif status_code >= 400:
        log_level = logging.WARNING
    else:
        log_level = logging.INFO

    logger.log(
        log_level,
        "Response: %s %s - %d (%.3fs)",
        method,
        path,
        status_code,
        duration,
    )
    return response


app.include_router(health.router, prefix="/api/v1", tags=["health"])
app.include_router(channels.router, prefix="/api/v1", tags=["channels"])
app.include_router(stats.router, prefix="/api/v1", tags=["stats"])
app.include_router(search.router, prefix="/api/v1", tags=["search"])
app.include_router(data.router, tags=["data"])
