"""Connection registry: the authoritative connection and room membership state."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from relay.exceptions import DuplicateConnectionError, UnknownConnectionError


class Connection(BaseModel):
    """
    One live client session.

    Attributes:
        connection_id: Identity assigned by the transport at connect time.
        connected_at: UTC time the connection was registered.
        sequence: Ordinal of this connection within the registry's lifetime.
        rooms: Identifiers of the rooms this connection has joined.
    """

    connection_id: str = Field(frozen=True)
    connected_at: datetime = Field(frozen=True)
    sequence: int = Field(frozen=True, ge=1)
    rooms: set[str] = Field(default_factory=set)


class ConnectionRegistry:
    """
    Tracks live connections and their room memberships.

    Keeps two mappings in sync: connection id to Connection record and room id
    to the set of member connection ids. A room exists only while it has at
    least one member.

    All methods are synchronous and never suspend, so calls made from the
    event loop are atomic with respect to each other.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}
        self._total_connections = 0

    def register(self, connection_id: str) -> Connection:
        """
        Create a record for a newly connected client.

        Args:
            connection_id: Identity assigned by the transport.

        Returns:
            The new Connection record.

        Raises:
            DuplicateConnectionError: If the identity is already registered.
        """
        if connection_id in self._connections:
            raise DuplicateConnectionError(connection_id)

        self._total_connections += 1
        connection = Connection(
            connection_id=connection_id,
            connected_at=datetime.now(timezone.utc),
            sequence=self._total_connections,
        )
        self._connections[connection_id] = connection
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        """
        Remove a connection and detach it from every room it joined.

        Unknown identities are ignored, since disconnects can arrive after a
        partial teardown.

        Returns:
            The removed record, or None if the identity was not registered.
        """
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None

        for room_id in connection.rooms:
            members = self._rooms.get(room_id)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._rooms[room_id]

        return connection

    def add_to_room(self, connection_id: str, room_id: str) -> int:
        """
        Add a connection to a room. Joining twice has no further effect.

        Returns:
            The number of members in the room after the join.

        Raises:
            UnknownConnectionError: If the connection is not registered.
        """
        connection = self._connections.get(connection_id)
        if connection is None:
            raise UnknownConnectionError(connection_id)

        connection.rooms.add(room_id)
        members = self._rooms.setdefault(room_id, set())
        members.add(connection_id)
        return len(members)

    def is_member(self, connection_id: str, room_id: str) -> bool:
        return connection_id in self._rooms.get(room_id, ())

    def room_size(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    def members(self, room_id: str) -> frozenset[str]:
        """Snapshot of the room's current member ids (empty if no room)."""
        return frozenset(self._rooms.get(room_id, ()))

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def rooms_of(self, connection_id: str) -> frozenset[str]:
        connection = self._connections.get(connection_id)
        if connection is None:
            return frozenset()
        return frozenset(connection.rooms)

    def connection_count(self) -> int:
        return len(self._connections)

    def total_connections_ever(self) -> int:
        return self._total_connections

    def room_count(self) -> int:
        return len(self._rooms)


connection_registry = ConnectionRegistry()
