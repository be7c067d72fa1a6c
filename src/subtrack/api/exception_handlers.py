"""Centralized exception handlers rendering RFC 7807 Problem Details.

Domain exceptions raised by the tracker are converted here, so routers
only raise and never build error responses themselves.

RFC 7807 Reference: https://tools.ietf.org/html/rfc7807
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from subtrack.api.middleware.request_id import get_request_id
from subtrack.api.schemas.responses import (
    ERROR_TITLES,
    ErrorCode,
    FieldError,
    ProblemDetail,
    ProblemJSONResponse,
    ValidationProblemDetail,
    get_error_type_uri,
)
from subtrack.exceptions import APIError, StorageError, UpstreamError

logger = logging.getLogger(__name__)

MAX_DETAIL_LENGTH = 4096
"""Maximum allowed length for detail messages before truncation."""

TRUNCATION_SUFFIX = "... (truncated)"


def _truncate_detail(detail: str) -> str:
    """Truncate a detail message that exceeds ``MAX_DETAIL_LENGTH``."""
    if len(detail) <= MAX_DETAIL_LENGTH:
        return detail
    return detail[: MAX_DETAIL_LENGTH - len(TRUNCATION_SUFFIX)] + TRUNCATION_SUFFIX


def _request_id(request: Request) -> str:
    """Request ID from the context variable, then request.state, else "-"."""
    request_id = get_request_id()
    if request_id:
        return request_id
    state_request_id = getattr(request.state, "request_id", None)
    return str(state_request_id) if state_request_id else "-"


def _problem_response(
    request: Request,
    code: ErrorCode,
    status: int,
    detail: str,
) -> ProblemJSONResponse:
    """Build a ``ProblemJSONResponse`` for the given error code.

    Parameters
    ----------
    request : Request
        The incoming request (for ``instance`` and the request ID).
    code : ErrorCode
        The error code for the problem.
    status : int
        HTTP status code for the response.
    detail : str
        Human-readable explanation of the problem.

    Returns
    -------
    ProblemJSONResponse
        RFC 7807 compliant JSON response.
    """
    problem = ProblemDetail(
        type=get_error_type_uri(code),
        title=ERROR_TITLES.get(code, "Error"),
        status=status,
        detail=_truncate_detail(detail),
        instance=str(request.url.path),
        code=code.value,
        request_id=_request_id(request),
    )
    return ProblemJSONResponse(content=problem.model_dump(), status_code=status)


async def api_error_handler(request: Request, exc: APIError) -> ProblemJSONResponse:
    """Handle NotFoundError, BadRequestError, ConflictError and friends."""
    fields = exc.to_problem_detail(
        instance=str(request.url.path), request_id=_request_id(request)
    )
    fields["detail"] = _truncate_detail(fields["detail"])
    problem = ProblemDetail(**fields)
    return ProblemJSONResponse(content=problem.model_dump(), status_code=exc.status_code)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> ProblemJSONResponse:
    """Convert request validation failures to a 422 with a field error list.

    Parameters
    ----------
    request : Request
        The incoming FastAPI request.
    exc : RequestValidationError
        The Pydantic validation error.

    Returns
    -------
    ProblemJSONResponse
        RFC 7807 response with status 422 and an ``errors`` array.
    """
    errors = [
        FieldError(
            loc=list(error.get("loc", [])),
            msg=error.get("msg", ""),
            type=error.get("type", ""),
        )
        for error in exc.errors()
    ]
    problem = ValidationProblemDetail(
        type=get_error_type_uri(ErrorCode.VALIDATION_ERROR),
        title=ERROR_TITLES[ErrorCode.VALIDATION_ERROR],
        status=422,
        detail="Request validation failed",
        instance=str(request.url.path),
        code=ErrorCode.VALIDATION_ERROR.value,
        request_id=_request_id(request),
        errors=errors,
    )
    return ProblemJSONResponse(content=problem.model_dump(), status_code=422)


async def upstream_error_handler(
    request: Request, exc: UpstreamError
) -> ProblemJSONResponse:
    """Map upstream failures to 502 without exposing upstream details."""
    logger.error(
        "Upstream error: %s (channel=%s, status=%s)",
        exc.message,
        exc.channel_id,
        exc.status_code,
    )
    return _problem_response(
        request,
        ErrorCode.EXTERNAL_SERVICE_ERROR,
        502,
        "Upstream service unavailable",
    )


async def storage_error_handler(
    request: Request, exc: StorageError
) -> ProblemJSONResponse:
    """Map storage failures to 500 ``STORAGE_ERROR`` and log the cause."""
    logger.error(
        "Storage error: %s (operation=%s, path=%s)",
        exc.message,
        exc.operation,
        exc.path,
        exc_info=exc.original_error,
    )
    return _problem_response(
        request, ErrorCode.STORAGE_ERROR, 500, "A storage error occurred"
    )


async def generic_error_handler(
    request: Request, exc: Exception
) -> ProblemJSONResponse:
    """Catch-all: log the stack trace and return a generic 500."""
    logger.exception("Unhandled exception: %s", exc)
    return _problem_response(
        request, ErrorCode.INTERNAL_ERROR, 500, "An unexpected error occurred"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register every handler in this module on ``app``.

    Examples
    --------
    >>> app = FastAPI()
    >>> register_exception_handlers(app)
    """
    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamError, upstream_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StorageError, storage_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_error_handler)
