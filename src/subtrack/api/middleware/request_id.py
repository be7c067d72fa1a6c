"""Request ID middleware for correlating log lines and error responses.

The middleware takes ``X-Request-ID`` from the incoming request, or
generates a UUID4 when the header is missing or unusable, and exposes it
through a context variable so exception handlers and log filters can
read it without the request object. The ID is echoed back in the
response headers.
"""

from __future__ import annotations

import contextvars
import logging
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint

logger = logging.getLogger(__name__)

MAX_REQUEST_ID_LENGTH = 128

REQUEST_ID_HEADER = "X-Request-ID"

# Empty string means "outside of a request"
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default=""
)


def get_request_id() -> str:
    """Get the current request ID, or an empty string outside a request."""
    return request_id_var.get()


def _sanitize_request_id(header_value: str | None) -> str:
    """Return a usable request ID for a raw header value.

    Missing values and values with characters outside printable ASCII
    (33-126) are replaced by a fresh UUID4; values longer than
    ``MAX_REQUEST_ID_LENGTH`` are truncated, keeping the prefix.

    Parameters
    ----------
    header_value : str | None
        The raw ``X-Request-ID`` header value.

    Returns
    -------
    str
        A valid request ID.
    """
    if not header_value:
        return str(uuid.uuid4())

    if not all(33 <= ord(c) <= 126 for c in header_value):
        logger.warning("Ignoring X-Request-ID with non-printable characters")
        return str(uuid.uuid4())

    return header_value[:MAX_REQUEST_ID_LENGTH]


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Propagate a request ID through contextvars, request.state and headers.

    Examples
    --------
    >>> app = FastAPI()
    >>> app.add_middleware(RequestIdMiddleware)
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = _sanitize_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)


class RequestIdFilter(logging.Filter):
    """Logging filter that sets ``record.request_id`` ("-" outside requests).

    Lets formatters use ``%(request_id)s``; the CLI installs it on the
    root handler when it configures logging.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True
