"""
Correlation ID tracking for HTTP requests and WebSocket connections.

HTTP requests take the id from the X-Correlation-ID header or get a fresh
8-char id. WebSocket connections set it once per connection from the
upgrade request header or the connection id.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Context variable for storing correlation ID per request or connection
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"
CORRELATION_ID_LENGTH = 8


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to HTTP requests.

    This middleware:
    - Extracts correlation ID from X-Correlation-ID header or generates new 8-char UUID
    - Stores correlation ID in request.state.request_id
    - Stores correlation ID in context variable for logging
    - Adds correlation ID to response headers
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get(
            CORRELATION_ID_HEADER, str(uuid.uuid4())[:CORRELATION_ID_LENGTH]
        )
        cid = cid[:CORRELATION_ID_LENGTH]

        request.state.request_id = cid
        correlation_id.set(cid)

        response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = cid

        return response


def set_correlation_id(value: str) -> str:
    """
    Set the correlation ID for the current context, truncated to 8 chars.

    Returns:
        The stored correlation ID.
    """
    cid = value[:CORRELATION_ID_LENGTH]
    correlation_id.set(cid)
    return cid


def get_correlation_id() -> str:
    """
    Get the correlation ID for the current request context.

    Returns:
        The correlation ID string, or empty string if not set.
    """
    return correlation_id.get()
