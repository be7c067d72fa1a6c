"""API response envelope schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from starlette.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standardized error codes for API responses.

    4xx Client Errors:
        NOT_FOUND: Resource does not exist (404)
        BAD_REQUEST: Invalid request parameters (400)
        VALIDATION_ERROR: Request validation failed (422)
        CONFLICT: Resource conflict, e.g. channel already tracked (409)

    5xx Server Errors:
        INTERNAL_ERROR: Unexpected server error (500)
        STORAGE_ERROR: Persistence operation failed (500)
        EXTERNAL_SERVICE_ERROR: Upstream service unavailable (502)
    """

    # 4xx Client Errors
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"

    # 5xx Server Errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


# RFC 7807 Constants and Utilities
ERROR_TYPE_BASE: str = "https://api.subtrack.dev/errors"
"""Base URI for constructing RFC 7807 type URIs."""


def get_error_type_uri(code: ErrorCode) -> str:
    """Generate RFC 7807 type URI from error code.

    Parameters
    ----------
    code : ErrorCode
        The error code to generate a URI for.

    Returns
    -------
    str
        The full RFC 7807 type URI for the error code.

    Examples
    --------
    >>> get_error_type_uri(ErrorCode.NOT_FOUND)
    'https://api.subtrack.dev/errors/NOT_FOUND'
    """
    return f"{ERROR_TYPE_BASE}/{code.value}"


# RFC 7807 Error Title Mapping
ERROR_TITLES: dict[ErrorCode, str] = {
    ErrorCode.NOT_FOUND: "Resource Not Found",
    ErrorCode.BAD_REQUEST: "Bad Request",
    ErrorCode.VALIDATION_ERROR: "Validation Error",
    ErrorCode.CONFLICT: "Resource Conflict",
    ErrorCode.INTERNAL_ERROR: "Internal Server Error",
    ErrorCode.STORAGE_ERROR: "Storage Error",
    ErrorCode.EXTERNAL_SERVICE_ERROR: "External Service Error",
}
"""Mapping from ErrorCode to human-readable RFC 7807 title."""


# RFC 7807 Problem Details Models


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details response for API errors.

    Attributes
    ----------
    type : str
        URI identifying the problem type.
    title : str
        Short human-readable summary of the problem type.
    status : int
        HTTP status code (4xx or 5xx).
    detail : str
        Human-readable explanation of the specific problem occurrence.
    instance : str
        URI reference of the specific occurrence.
    code : str
        Application-specific error code from ErrorCode enum.
    request_id : str
        Unique request identifier for correlation and debugging.
    """

    type: str = Field(
        ...,
        description="URI identifying the problem type",
        examples=["https://api.subtrack.dev/errors/NOT_FOUND"],
    )
    title: str = Field(
        ...,
        description="Short human-readable summary",
        examples=["Resource Not Found"],
    )
    status: int = Field(
        ...,
        ge=400,
        le=599,
        description="HTTP status code",
        examples=[404],
    )
    detail: str = Field(
        ...,
        description="Human-readable explanation of the problem",
        examples=["Channel 'UCxyz123' not found"],
    )
    instance: str = Field(
        ...,
        description="URI reference of the specific occurrence",
        examples=["/api/v1/channels/UCxyz123/history"],
    )
    code: str = Field(
        ...,
        description="Application-specific error code",
        examples=["NOT_FOUND"],
    )
    request_id: str = Field(
        ...,
        description="Unique request identifier for correlation",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )


class FieldError(BaseModel):
    """Individual field validation error for RFC 7807 validation responses."""

    loc: list[str | int] = Field(
        ...,
        description="Location of the error (field path)",
        examples=[["query", "limit"]],
    )
    msg: str = Field(..., description="Error message")
    type: str = Field(..., description="Error type identifier")


class ValidationProblemDetail(ProblemDetail):
    """RFC 7807 Problem Details with validation errors for 422 responses."""

    errors: list[FieldError] = Field(
        ...,
        description="List of field-level validation errors",
    )


class ProblemJSONResponse(JSONResponse):
    """JSONResponse subclass for RFC 7807 Problem Details.

    Sets the ``application/problem+json`` media type.
    """

    media_type = "application/problem+json"
