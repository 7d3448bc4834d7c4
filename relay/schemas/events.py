"""Wire models for inbound and outbound relay events."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing_extensions import Annotated

from relay.constants import ANONYMOUS

NonEmptyStr = Annotated[str, Field(min_length=1)]


def _display_name(value: Any) -> str | None:
    """Keep strings, stringify non-zero numbers, drop anything else."""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return str(value)
    return None


# Optional display names never reject the event they arrive with
DisplayName = Annotated[str | None, BeforeValidator(_display_name)]


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-01-01T12:00:00.000Z."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class EventFrame(BaseModel):
    """
    Envelope of every WebSocket frame in both directions.

    Attributes:
        event: Event name, e.g. ``join`` or ``receiveMessage``.
        data: Event payload; left unvalidated here so each handler can
            report its own error for a bad payload.
    """

    event: str
    data: Any = None


class JoinRequest(BaseModel):
    """Payload of the ``join`` event."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: NonEmptyStr = Field(alias="chatId")
    username: DisplayName = None


class SendMessageRequest(BaseModel):
    """Payload of the ``sendMessage`` event."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: NonEmptyStr = Field(alias="chatId")
    message: NonEmptyStr
    username: DisplayName = None
    sender: DisplayName = None

    @property
    def resolved_username(self) -> str:
        """Username, falling back to sender, then to "Anonymous"."""
        return self.username or self.sender or ANONYMOUS

    @property
    def resolved_sender(self) -> str:
        """Sender, falling back to username, then to "Anonymous"."""
        return self.sender or self.username or ANONYMOUS


class ErrorPayload(BaseModel):
    message: str


class JoinedPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId")
    success: bool = True
    room_size: int = Field(alias="roomSize", ge=0)


class ReceiveMessagePayload(BaseModel):
    """Message delivered to every member of a room."""

    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId")
    message: str
    username: str
    sender: str
    timestamp: str = Field(default_factory=iso_timestamp)
