"""
Custom exception classes for the relay.

Client errors (ClientInputError, AuthorizationError) are recovered by the
broadcaster and reported to the offending connection only. Invariant
violations signal a transport bug; they fail the single offending operation
and never stop the process.

Also registers the HTTP exception handlers that give unknown paths a 404 body
listing the available endpoints.
"""

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from relay.constants import AVAILABLE_ENDPOINTS
from relay.logging import logger


class RelayError(Exception):
    """Base class for all relay errors."""

    pass


class ClientInputError(RelayError):
    """
    Client sent malformed or incomplete event data.

    The message is the text reported back to the client in an ``error`` event.
    """

    pass


class AuthorizationError(RelayError):
    """
    Client attempted an operation it is not entitled to.

    Raised when a connection sends a message to a room it has not joined.
    """

    pass


class InvariantViolation(RelayError):
    """
    State that a correct transport can never produce.

    Attributes:
        connection_id: Identity of the connection that triggered the violation.
    """

    def __init__(self, message: str, connection_id: str):
        super().__init__(message)
        self.connection_id = connection_id


class DuplicateConnectionError(InvariantViolation):
    """A connection identity was registered twice while still live."""

    def __init__(self, connection_id: str):
        super().__init__(
            f"Connection {connection_id} is already registered", connection_id
        )


class UnknownConnectionError(InvariantViolation):
    """An operation referenced a connection identity that is not registered."""

    def __init__(self, connection_id: str):
        super().__init__(
            f"Connection {connection_id} is not registered", connection_id
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the relay's HTTP exception handlers on a FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        if exc.status_code != status.HTTP_404_NOT_FOUND:
            return await http_exception_handler(request, exc)

        logger.warning(f"404 - Route not found: {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "error": "Not Found",
                "path": request.url.path,
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
