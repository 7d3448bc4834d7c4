import json
import uuid
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket

from relay.broadcaster import RoomBroadcaster, room_broadcaster
from relay.constants import (
    WS_GOING_AWAY_CODE,
    WS_INTERNAL_ERROR_CODE,
    WS_NORMAL_CLOSURE_CODE,
    WS_POLICY_VIOLATION_CODE,
)
from relay.exceptions import InvariantViolation
from relay.logging import clear_log_context, logger, set_log_context
from relay.managers.websocket_connection_manager import (
    ConnectionManager,
    connection_manager,
)
from relay.middlewares.correlation_id import (
    CORRELATION_ID_HEADER,
    set_correlation_id,
)
from relay.settings import app_settings


def describe_close_code(close_code: int) -> str:
    """Human-readable disconnect reason for a WebSocket close code."""
    if close_code == WS_NORMAL_CLOSURE_CODE:
        return "client disconnect"
    if close_code == WS_GOING_AWAY_CODE:
        return "going away"
    if close_code == WS_INTERNAL_ERROR_CODE:
        return "server error"
    return f"transport close (code {close_code})"


class RelayWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint that drives the relay's connection lifecycle.

    Assigns every accepted socket a fresh connection id, registers it with
    the broadcaster and the connection manager, and tears both down on
    disconnect. Subclasses implement ``on_receive`` to route decoded frames.
    """

    encoding = None  # frames are decoded by ``decode`` below
    broadcaster: RoomBroadcaster = room_broadcaster
    connections: ConnectionManager = connection_manager

    connection_id: str | None = None

    async def dispatch(self) -> None:
        """
        Manage the WebSocket connection lifecycle.

        1. Calls ``on_connect``; a refused socket ends dispatch right away.
        2. Receives frames until the client disconnects, passing each decoded
           frame to ``on_receive``.
        3. Always calls ``on_disconnect`` for a registered connection, with
           WS_1011_INTERNAL_ERROR if the loop raised.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)

        if self.connection_id is None:
            return

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except Exception as exc:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> Any:
        """
        Decode an incoming frame as JSON.

        Returns:
            The parsed JSON value, or None for binary frames and text that
            is not valid JSON.
        """
        text = message.get("text")
        if text is None:
            logger.debug(f"Ignoring binary frame from {self.connection_id}")
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring non-JSON frame from {self.connection_id}")
            return None

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accept the socket and register a new relay connection.

        The upgrade is refused with a policy-violation close if its Origin is
        not in ALLOWED_ORIGINS. A duplicate connection id is an invariant
        violation: the socket is closed and the process carries on.
        """
        origin = websocket.headers.get("origin")
        if not app_settings.is_origin_allowed(origin):
            logger.warning(f"Blocking WebSocket upgrade from origin: {origin}")
            await websocket.close(code=WS_POLICY_VIOLATION_CODE)
            return

        await websocket.accept()

        connection_id = str(uuid.uuid4())

        # Reuse the upgrade request's correlation id so logs line up with
        # the preceding HTTP requests
        set_correlation_id(
            websocket.headers.get(CORRELATION_ID_HEADER.lower()) or connection_id
        )
        set_log_context(connection_id=connection_id)

        try:
            self.broadcaster.connect(connection_id)
        except InvariantViolation:
            await websocket.close(code=WS_INTERNAL_ERROR_CODE)
            clear_log_context()
            return

        self.connections.connect(connection_id, websocket)
        self.connection_id = connection_id

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """
        Forget the connection in the manager and the registry.

        No other room member is notified.
        """
        if self.connection_id is None:
            return

        self.connections.disconnect(self.connection_id)
        self.broadcaster.disconnect(
            self.connection_id, reason=describe_close_code(close_code)
        )
        clear_log_context()
