"""
Room broadcaster: validates join/send requests and fans messages out.

Each public coroutine handles one inbound event for one connection. All
registry reads and writes for an event happen before its first await, so
the membership check and the recipient snapshot of a broadcast are
consistent with each other on the single-threaded event loop.
"""

import asyncio
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ValidationError

from relay.constants import (
    EVENT_ERROR,
    EVENT_JOINED,
    EVENT_RECEIVE_MESSAGE,
    INVALID_JOIN_MESSAGE,
    INVALID_MESSAGE_MESSAGE,
    NOT_A_MEMBER_MESSAGE,
)
from relay.exceptions import (
    AuthorizationError,
    ClientInputError,
    DuplicateConnectionError,
    InvariantViolation,
)
from relay.logging import logger
from relay.managers.websocket_connection_manager import connection_manager
from relay.observers import (
    LoggingObserver,
    MetricsObserver,
    RelayEvent,
    RelayEventType,
)
from relay.protocols import RelayObserver, Transport
from relay.registry import Connection, ConnectionRegistry, connection_registry
from relay.schemas.events import (
    ErrorPayload,
    JoinedPayload,
    JoinRequest,
    ReceiveMessagePayload,
    SendMessageRequest,
)


class RoomBroadcaster:
    """
    Relay logic over a ConnectionRegistry and a Transport.

    The registry is the single source of truth for both authorization
    (who may send to a room) and delivery (who receives a broadcast); the
    transport only delivers events to individual connections.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        transport: Transport,
        observers: Iterable[RelayObserver] = (),
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.observers: list[RelayObserver] = list(observers)

    def _publish(self, event: RelayEvent) -> None:
        for observer in self.observers:
            try:
                observer.notify(event)
            except Exception:
                logger.exception(
                    f"Observer {type(observer).__name__} failed on "
                    f"{event.type.value} event"
                )

    def _report_violation(self, ex: InvariantViolation, operation: str) -> None:
        self._publish(
            RelayEvent(
                type=RelayEventType.INVARIANT_VIOLATION,
                connection_id=ex.connection_id,
                reason=str(ex),
                detail={"kind": type(ex).__name__, "operation": operation},
            )
        )

    async def _emit_error(self, connection_id: str, message: str) -> None:
        await self.transport.emit(
            connection_id, EVENT_ERROR, ErrorPayload(message=message).model_dump()
        )

    def connect(self, connection_id: str) -> Connection:
        """
        Register a newly connected client.

        Raises:
            DuplicateConnectionError: If the identity is already live. The
                violation is reported to observers before re-raising so the
                transport can refuse this one connection.
        """
        try:
            connection = self.registry.register(connection_id)
        except DuplicateConnectionError as ex:
            self._report_violation(ex, "connect")
            raise

        self._publish(
            RelayEvent(
                type=RelayEventType.CONNECTED,
                connection_id=connection_id,
                detail={
                    "sequence": connection.sequence,
                    "active": self.registry.connection_count(),
                },
            )
        )
        return connection

    async def join(self, connection_id: str, data: Any) -> int | None:
        """
        Handle a ``join`` event.

        Args:
            connection_id: Connection that sent the event.
            data: Raw event payload, expected ``{"chatId": str, "username"?: str}``.

        Returns:
            The room size after joining, or None if the join was rejected.
        """
        try:
            request = self._parse(JoinRequest, data, INVALID_JOIN_MESSAGE)
            room_size = self.registry.add_to_room(
                connection_id, request.chat_id
            )
        except ClientInputError as ex:
            self._publish(
                RelayEvent(
                    type=RelayEventType.JOIN_REJECTED,
                    connection_id=connection_id,
                    reason="invalid_join",
                )
            )
            await self._emit_error(connection_id, str(ex))
            return None
        except InvariantViolation as ex:
            self._report_violation(ex, "join")
            return None

        self._publish(
            RelayEvent(
                type=RelayEventType.JOINED,
                connection_id=connection_id,
                room_id=request.chat_id,
                room_size=room_size,
                detail={"username": request.username},
            )
        )
        ack = JoinedPayload(chat_id=request.chat_id, room_size=room_size)
        await self.transport.emit(
            connection_id, EVENT_JOINED, ack.model_dump(by_alias=True)
        )
        return room_size

    async def send_message(self, connection_id: str, data: Any) -> int:
        """
        Handle a ``sendMessage`` event by broadcasting to the whole room.

        The sender receives its own message back, as does every other
        member. Delivery is fire-and-forget.

        Args:
            connection_id: Connection that sent the event.
            data: Raw event payload, expected ``{"chatId", "message",
                "username"?, "sender"?}``.

        Returns:
            Number of members the message was addressed to (0 if rejected).
        """
        request: SendMessageRequest | None = None
        try:
            request = self._parse(
                SendMessageRequest, data, INVALID_MESSAGE_MESSAGE
            )
            if not self.registry.is_member(connection_id, request.chat_id):
                raise AuthorizationError(NOT_A_MEMBER_MESSAGE)
        except (ClientInputError, AuthorizationError) as ex:
            self._publish(
                RelayEvent(
                    type=RelayEventType.MESSAGE_REJECTED,
                    connection_id=connection_id,
                    room_id=request.chat_id if request else None,
                    reason="not_member" if request else "invalid_message",
                )
            )
            await self._emit_error(connection_id, str(ex))
            return 0

        recipients = self.registry.members(request.chat_id)
        payload = ReceiveMessagePayload(
            chat_id=request.chat_id,
            message=request.message,
            username=request.resolved_username,
            sender=request.resolved_sender,
        ).model_dump(by_alias=True)

        results = await asyncio.gather(
            *(
                self.transport.emit(member_id, EVENT_RECEIVE_MESSAGE, payload)
                for member_id in recipients
            ),
            return_exceptions=True,
        )
        delivered = sum(1 for result in results if result is True)

        self._publish(
            RelayEvent(
                type=RelayEventType.MESSAGE_BROADCAST,
                connection_id=connection_id,
                room_id=request.chat_id,
                room_size=len(recipients),
                detail={
                    "sender": payload["sender"],
                    "message": request.message,
                    "recipients": len(recipients),
                    "delivered": delivered,
                    "failed": len(recipients) - delivered,
                },
            )
        )
        return len(recipients)

    def disconnect(self, connection_id: str, reason: str) -> Connection | None:
        """
        Handle a disconnect: forget the connection and all its memberships.

        Other room members are not notified.

        Returns:
            The removed record, or None if the connection was unknown.
        """
        connection = self.registry.unregister(connection_id)
        self._publish(
            RelayEvent(
                type=RelayEventType.DISCONNECTED,
                connection_id=connection_id,
                reason=reason,
                detail={
                    "rooms": len(connection.rooms) if connection else 0,
                    "known": connection is not None,
                    "active": self.registry.connection_count(),
                },
            )
        )
        return connection

    @staticmethod
    def _parse(model: type[BaseModel], data: Any, error_message: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as ex:
            raise ClientInputError(error_message) from ex


room_broadcaster = RoomBroadcaster(
    registry=connection_registry,
    transport=connection_manager,
    observers=[LoggingObserver(), MetricsObserver(connection_registry)],
)
