"""Shared OpenAPI response definitions for RFC 7807 errors."""

from __future__ import annotations

from typing import Any

from subtrack.api.schemas.responses import ProblemDetail, ValidationProblemDetail

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"

ResponsesType = dict[int | str, dict[str, Any]]


def _problem(description: str) -> dict[str, Any]:
    return {
        "model": ProblemDetail,
        "description": description,
        "content": {PROBLEM_JSON_MEDIA_TYPE: {}},
    }


BAD_REQUEST_RESPONSE: ResponsesType = {400: _problem("Bad request")}
NOT_FOUND_RESPONSE: ResponsesType = {404: _problem("Resource not found")}
CONFLICT_RESPONSE: ResponsesType = {409: _problem("Channel already tracked")}
INTERNAL_ERROR_RESPONSE: ResponsesType = {500: _problem("Internal server error")}
UPSTREAM_ERROR_RESPONSE: ResponsesType = {502: _problem("Upstream unavailable")}

VALIDATION_ERROR_RESPONSE: ResponsesType = {
    422: {
        "model": ValidationProblemDetail,
        "description": "Validation error",
        "content": {PROBLEM_JSON_MEDIA_TYPE: {}},
    }
}

STANDARD_ERRORS: ResponsesType = {
    **VALIDATION_ERROR_RESPONSE,
    **INTERNAL_ERROR_RESPONSE,
}
"""Standard errors for most endpoints (422, 500)."""

GET_ITEM_ERRORS: ResponsesType = {
    **NOT_FOUND_RESPONSE,
    **STANDARD_ERRORS,
}
"""Errors for single-channel lookups (404, 422, 500)."""
