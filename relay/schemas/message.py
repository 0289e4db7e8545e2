from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class MessageType(StrEnum):
    """
    Kinds of messages exchanged over the chat WebSocket.

    Attributes:
        JOIN: A participant joined (server-generated)
        MSG: A chat message from a participant
        LEAVE: A participant left (server-generated)
    """

    JOIN = "join"
    MSG = "msg"
    LEAVE = "leave"


class InboundMessage(BaseModel):  # type: ignore[misc]
    """
    Message as received from a client.

    Only the first message of a session is trusted for ``user``; ``time``
    is accepted for compatibility and never used.
    """

    model_config = ConfigDict(extra="ignore")

    type: MessageType | None = None
    user: str = ""
    text: str = ""
    time: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def empty_type_is_unset(cls, v: Any) -> Any:
        """Treat an empty ``type`` the same as a missing one."""
        if v == "":
            return None
        return v

    @field_validator("user", "text", mode="before")
    @classmethod
    def null_is_empty(cls, v: Any) -> Any:
        """Treat a null ``user`` or ``text`` as an empty string."""
        if v is None:
            return ""
        return v


class ChatMessage(BaseModel):  # type: ignore[misc]
    """Canonical message as broadcast to every participant."""

    model_config = ConfigDict(frozen=True)

    type: MessageType
    user: str
    text: str
    time: str


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Format a datetime as an RFC3339 timestamp with second precision.

    Naive datetimes are assumed to be UTC.

    Args:
        moment: The datetime to format.

    Returns:
        str: Timestamp such as ``2026-10-19T12:00:00+00:00``.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.isoformat(timespec="seconds")
