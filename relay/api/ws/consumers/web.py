from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter
from pydantic import ValidationError
from starlette.websockets import WebSocket

from relay.api.ws.websocket import RelayWebSocketEndpoint
from relay.constants import EVENT_JOIN, EVENT_SEND_MESSAGE
from relay.exceptions import RelayError
from relay.logging import logger
from relay.schemas.events import EventFrame

router = APIRouter()

EventHandler = Callable[[str, Any], Awaitable[Any]]


@router.websocket_route("/ws")
class Web(RelayWebSocketEndpoint):
    """
    Relay WebSocket endpoint.

    Every frame is a JSON object ``{"event": name, "data": payload}``.
    ``join`` and ``sendMessage`` are routed to the broadcaster; anything else
    is logged and ignored without closing the connection.
    """

    def event_handlers(self) -> dict[str, EventHandler]:
        return {
            EVENT_JOIN: self.broadcaster.join,
            EVENT_SEND_MESSAGE: self.broadcaster.send_message,
        }

    async def on_receive(self, websocket: WebSocket, data: Any) -> None:
        """
        Route one decoded frame to its event handler.

        Args:
            websocket: The WebSocket connection instance.
            data: The decoded JSON frame, or None if it could not be decoded.
        """
        try:
            frame = EventFrame.model_validate(data)
        except ValidationError:
            logger.debug(
                f"Ignoring malformed frame from {self.connection_id}: {data!r}"
            )
            return

        handler = self.event_handlers().get(frame.event)
        if handler is None:
            logger.debug(
                f"Ignoring unknown event '{frame.event}' from {self.connection_id}"
            )
            return

        try:
            await handler(self.connection_id, frame.data)
        except RelayError as ex:
            logger.error(
                f"Failed to handle {frame.event} from {self.connection_id}: {ex}"
            )
