"""
Protocol classes for structural subtyping (duck typing with type safety).

Protocols define interfaces without requiring explicit inheritance. Any class
that implements the required members is considered compatible, so the hub can
be driven by the WebSocket adapter in production and by plain fakes in tests.

Example:
    ```python
    from relay.protocols import ChatConnection


    async def greet(connection: ChatConnection) -> None:
        if not await connection.send({"type": "msg", "text": "hi"}):
            await connection.close()
    ```
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ChatConnection(Protocol):
    """
    Protocol for a bidirectional client channel as seen by the hub.

    The hub only ever writes to a connection and, when a write fails,
    closes it. Reading is owned by the transport's read loop.
    """

    @property
    def connection_id(self) -> str:
        """
        Opaque identity of this connection, unique for its lifetime.

        Used as the registry key instead of object identity.
        """
        ...

    async def send(self, message: dict[str, Any]) -> bool:
        """
        Deliver a JSON-serializable message.

        Args:
            message: The message payload.

        Returns:
            True if the message was written, False if the channel is
            closed, errored or otherwise unwritable.
        """
        ...

    async def close(self, code: int = 1000) -> None:
        """
        Release the channel. Closing an already closed channel is a no-op.

        Args:
            code: WebSocket close code.
        """
        ...
