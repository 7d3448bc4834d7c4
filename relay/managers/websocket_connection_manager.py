from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from relay.logging import logger
from relay.schemas.events import EventFrame


class ConnectionManager:
    """
    Manager for live WebSocket connections.

    Maps relay connection ids to their WebSocket for O(1) lookups and acts
    as the relay's outbound transport: ``emit`` wraps an event in an
    ``{"event", "data"}`` frame and sends it to one connection.
    """

    def __init__(self) -> None:
        self.connections: dict[str, WebSocket] = {}

    def connect(self, connection_id: str, websocket: WebSocket) -> None:
        """
        Adds a new WebSocket connection under its relay connection id.

        Args:
            connection_id: Identity assigned to the connection.
            websocket: The accepted WebSocket.
        """
        self.connections[connection_id] = websocket
        logger.debug(
            f"websocket object ({id(websocket)}) added to active connections "
            f"with id {connection_id}"
        )

    def disconnect(self, connection_id: str) -> None:
        """
        Removes a WebSocket connection by connection id.

        Args:
            connection_id: The id of the connection to remove.
        """
        if connection_id not in self.connections:
            return

        websocket = self.connections.pop(connection_id)
        logger.debug(
            f"websocket object ({id(websocket)}) removed from active connections "
            f"for id {connection_id}"
        )

    def get_connection(self, connection_id: str) -> WebSocket | None:
        return self.connections.get(connection_id)

    async def emit(
        self, connection_id: str, event: str, data: dict[str, Any]
    ) -> bool:
        """
        Sends one event frame to one connection.

        A connection that cannot be written to is dropped from the manager;
        the failure is logged and never raised to the caller.

        Args:
            connection_id: Target connection id.
            event: Outbound event name.
            data: Event payload.

        Returns:
            True if the frame was sent, False otherwise.
        """
        websocket = self.connections.get(connection_id)
        if websocket is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return False

        frame = EventFrame(event=event, data=data)
        try:
            await websocket.send_json(frame.model_dump(mode="json"))
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            # WebSocketDisconnect: Client disconnected
            # ConnectionError: Network errors
            # RuntimeError: WebSocket in invalid state
            logger.warning(
                f"Failed to send {event} to connection {id(websocket)} "
                f"(id: {connection_id}): {e}"
            )
            self.disconnect(connection_id)
            return False
        except Exception as e:
            logger.warning(
                f"Unexpected error sending {event} to connection "
                f"{id(websocket)} (id: {connection_id}): {e}"
            )
            self.disconnect(connection_id)
            return False

        return True


connection_manager = ConnectionManager()
