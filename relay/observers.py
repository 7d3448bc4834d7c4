"""
Observability hook for relay state transitions.

The broadcaster publishes one RelayEvent per transition to every injected
RelayObserver. LoggingObserver renders events through the application
logger and MetricsObserver keeps the Prometheus metrics current.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from relay.constants import MESSAGE_PREVIEW_LENGTH
from relay.logging import logger
from relay.registry import ConnectionRegistry
from relay.utils.metrics import (
    relay_connections_active,
    relay_connections_total,
    relay_invariant_violations_total,
    relay_joins_total,
    relay_messages_broadcast_total,
    relay_messages_delivered_total,
    relay_rejections_total,
    relay_rooms_active,
)


class RelayEventType(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    JOINED = "joined"
    JOIN_REJECTED = "join_rejected"
    MESSAGE_BROADCAST = "message_broadcast"
    MESSAGE_REJECTED = "message_rejected"
    INVARIANT_VIOLATION = "invariant_violation"


class RelayEvent(BaseModel):
    """
    One relay state transition.

    Attributes:
        type: What happened.
        connection_id: Connection that caused the transition.
        room_id: Room involved, if any.
        room_size: Room size after the transition, if a room is involved.
        reason: Short machine-readable reason for rejections, disconnects
            and invariant violations.
        detail: Free-form extra fields, e.g. sequence numbers or recipients.
    """

    type: RelayEventType
    connection_id: str
    room_id: str | None = None
    room_size: int | None = None
    reason: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)


def preview(message: str) -> str:
    """Shorten a message body for log output."""
    if len(message) > MESSAGE_PREVIEW_LENGTH:
        return message[:MESSAGE_PREVIEW_LENGTH] + "..."
    return message


class LoggingObserver:
    """Writes relay events to the application logger."""

    def notify(self, event: RelayEvent) -> None:
        detail = event.detail
        cid = event.connection_id
        extra = {"relay_event": event.type.value, "connection_id": cid}
        if event.room_id is not None:
            extra["room_id"] = event.room_id

        match event.type:
            case RelayEventType.CONNECTED:
                logger.info(
                    f"Client connected {cid} "
                    f"(connection #{detail.get('sequence')}, "
                    f"active: {detail.get('active')})",
                    extra=extra,
                )
            case RelayEventType.DISCONNECTED:
                logger.info(
                    f"Client disconnected {cid} (reason: {event.reason}). "
                    f"Was in {detail.get('rooms', 0)} room(s), "
                    f"remaining: {detail.get('active')}",
                    extra=extra,
                )
            case RelayEventType.JOINED:
                logger.info(
                    f"User {detail.get('username') or 'anonymous'} ({cid}) "
                    f"joined room {event.room_id} (size: {event.room_size})",
                    extra=extra,
                )
            case RelayEventType.MESSAGE_BROADCAST:
                logger.info(
                    f"Message from {detail.get('sender')} ({cid}) broadcast "
                    f"to {detail.get('recipients')} member(s) of room "
                    f"{event.room_id}: {preview(detail.get('message', ''))}",
                    extra=extra,
                )
                if detail.get("failed"):
                    logger.warning(
                        f"{detail['failed']} delivery(ies) failed in room "
                        f"{event.room_id}",
                        extra=extra,
                    )
            case RelayEventType.JOIN_REJECTED | RelayEventType.MESSAGE_REJECTED:
                logger.warning(
                    f"Rejected {event.type.value} from {cid}: {event.reason}",
                    extra=extra,
                )
            case RelayEventType.INVARIANT_VIOLATION:
                logger.error(
                    f"Invariant violation for {cid}: {event.reason}",
                    extra=extra,
                )


class MetricsObserver:
    """
    Updates Prometheus metrics from relay events.

    Gauges are re-read from the registry on every event so they cannot drift
    from the registry's state.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    def notify(self, event: RelayEvent) -> None:
        match event.type:
            case RelayEventType.CONNECTED:
                relay_connections_total.inc()
            case RelayEventType.JOINED:
                relay_joins_total.inc()
            case RelayEventType.MESSAGE_BROADCAST:
                relay_messages_broadcast_total.inc()
                relay_messages_delivered_total.inc(
                    event.detail.get("delivered", 0)
                )
            case RelayEventType.JOIN_REJECTED | RelayEventType.MESSAGE_REJECTED:
                relay_rejections_total.labels(
                    reason=event.reason or "unknown"
                ).inc()
            case RelayEventType.INVARIANT_VIOLATION:
                relay_invariant_violations_total.labels(
                    kind=event.detail.get("kind", "unknown")
                ).inc()

        relay_connections_active.set(self.registry.connection_count())
        relay_rooms_active.set(self.registry.room_count())
