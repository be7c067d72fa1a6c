"""Unit tests for the RFC 7807 exception handlers.

Each test mounts a throwaway route that raises one exception type and
checks the status code and Problem Details body.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import FastAPI, Query
from httpx import ASGITransport, AsyncClient

from subtrack.api.exception_handlers import (
    MAX_DETAIL_LENGTH,
    TRUNCATION_SUFFIX,
    register_exception_handlers,
)
from subtrack.api.middleware import RequestIdMiddleware
from subtrack.exceptions import (
    AlreadyTrackedError,
    BadRequestError,
    NotFoundError,
    StorageCorruptionError,
    StorageError,
    UpstreamError,
)

pytestmark = pytest.mark.asyncio


def _app(exc: Exception) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/test")
    async def raise_it() -> None:
        raise exc

    @app.get("/validated")
    async def validated(limit: int = Query(..., ge=1)) -> dict[str, int]:
        return {"limit": limit}

    return app


async def _get(app: FastAPI, path: str = "/test", **kwargs):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, **kwargs)


async def test_not_found_problem_detail() -> None:
    response = await _get(
        _app(NotFoundError(resource_type="Channel", identifier="UCxyz")),
        headers={"X-Request-ID": "abc-123"},
    )

    assert response.status_code == 404
    assert response.headers["content-type"] == "application/problem+json"
    data = response.json()
    assert data == {
        "type": "https://api.subtrack.dev/errors/NOT_FOUND",
        "title": "Resource Not Found",
        "status": 404,
        "detail": "Channel 'UCxyz' not found",
        "instance": "/test",
        "code": "NOT_FOUND",
        "request_id": "abc-123",
    }


async def test_bad_request() -> None:
    response = await _get(_app(BadRequestError(message="Missing channel ID")))

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing channel ID"


async def test_already_tracked_is_conflict() -> None:
    response = await _get(_app(AlreadyTrackedError("UCxyz")))

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"


async def test_api_error_body_matches_problem_detail() -> None:
    error = AlreadyTrackedError("UCxyz")

    response = await _get(_app(error), headers={"X-Request-ID": "req-9"})

    assert response.json() == error.to_problem_detail(
        instance="/test", request_id="req-9"
    )


async def test_upstream_error_hides_details() -> None:
    response = await _get(
        _app(UpstreamError("quota exceeded for key AIza...", status_code=403))
    )

    assert response.status_code == 502
    data = response.json()
    assert data["code"] == "EXTERNAL_SERVICE_ERROR"
    assert "AIza" not in data["detail"]


@pytest.mark.parametrize(
    "exc",
    [
        StorageError("disk full", path=Path("/data/channels.json"), operation="save"),
        StorageCorruptionError("both files unreadable"),
    ],
)
async def test_storage_errors_are_500(exc: Exception) -> None:
    response = await _get(_app(exc))

    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "STORAGE_ERROR"
    assert "/data" not in data["detail"]


async def test_unhandled_exception_is_generic_500() -> None:
    response = await _get(_app(RuntimeError("secret internals")))

    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "INTERNAL_ERROR"
    assert data["detail"] == "An unexpected error occurred"


async def test_validation_error_lists_fields() -> None:
    response = await _get(_app(RuntimeError("unused")), "/validated?limit=0")

    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert data["errors"][0]["loc"] == ["query", "limit"]


async def test_long_detail_is_truncated() -> None:
    response = await _get(_app(BadRequestError(message="x" * (MAX_DETAIL_LENGTH + 10))))

    detail = response.json()["detail"]
    assert len(detail) == MAX_DETAIL_LENGTH
    assert detail.endswith(TRUNCATION_SUFFIX)
