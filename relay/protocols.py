"""
Protocol classes for the relay's collaborators.

The broadcaster depends only on these interfaces, so any transport or
observability sink with matching methods can be plugged in, e.g. the
WebSocket connection manager in production and recording fakes in tests.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from relay.observers import RelayEvent


@runtime_checkable
class Transport(Protocol):
    """Outbound side of the bidirectional messaging channel."""

    async def emit(
        self, connection_id: str, event: str, data: dict[str, Any]
    ) -> bool:
        """
        Deliver one event to one connection.

        Delivery is best-effort: implementations must not raise on an
        unreachable connection.

        Args:
            connection_id: Target connection identity.
            event: Outbound event name.
            data: JSON-serializable payload.

        Returns:
            True if the event was handed to the connection, False otherwise.
        """
        ...


@runtime_checkable
class RelayObserver(Protocol):
    """Sink notified of every relay state transition."""

    def notify(self, event: "RelayEvent") -> None:
        """
        Handle one relay event. Must not block.

        Args:
            event: The state transition that just happened.
        """
        ...
