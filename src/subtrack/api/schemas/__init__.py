"""Request and response schemas for the subtrack API."""

from subtrack.api.schemas.channels import (
    AddChannelRequest,
    AddChannelResponse,
    ChannelListResponse,
    ForceUpdateResponse,
    SearchResponse,
)
from subtrack.api.schemas.responses import (
    ErrorCode,
    FieldError,
    ProblemDetail,
    ProblemJSONResponse,
    ValidationProblemDetail,
)

__all__ = [
    "AddChannelRequest",
    "AddChannelResponse",
    "ChannelListResponse",
    "ErrorCode",
    "FieldError",
    "ForceUpdateResponse",
    "ProblemDetail",
    "ProblemJSONResponse",
    "SearchResponse",
    "ValidationProblemDetail",
]
