"""
Recording fakes for the relay's Transport and RelayObserver protocols.
"""

from typing import Any

from relay.observers import RelayEvent, RelayEventType


class RecordingTransport:
    """
    In-memory transport that records every emit.

    Connections listed in ``unreachable`` behave like dropped sockets: the
    emit is not recorded and returns False.
    """

    def __init__(self, unreachable: set[str] | None = None) -> None:
        self.sent: list[tuple[str, str, dict[str, Any]]] = []
        self.unreachable: set[str] = unreachable or set()

    async def emit(
        self, connection_id: str, event: str, data: dict[str, Any]
    ) -> bool:
        if connection_id in self.unreachable:
            return False
        self.sent.append((connection_id, event, data))
        return True

    def received(
        self, connection_id: str, event: str | None = None
    ) -> list[dict[str, Any]]:
        """Payloads delivered to one connection, optionally for one event."""
        return [
            data
            for cid, name, data in self.sent
            if cid == connection_id and (event is None or name == event)
        ]

    def count(self, event: str) -> int:
        return sum(1 for _, name, _ in self.sent if name == event)

    def clear(self) -> None:
        self.sent.clear()


class RecordingObserver:
    """Observer that keeps every RelayEvent it is notified of."""

    def __init__(self) -> None:
        self.events: list[RelayEvent] = []

    def notify(self, event: RelayEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: RelayEventType) -> list[RelayEvent]:
        return [e for e in self.events if e.type == event_type]
