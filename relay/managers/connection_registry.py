import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, NamedTuple

from relay.exceptions import DuplicateConnectionError
from relay.logging import logger
from relay.protocols import ChatConnection


class Participant(NamedTuple):
    """A registered connection and the display name it joined with."""

    connection: ChatConnection
    name: str


class ConnectionRegistry:
    """
    Registry of joined connections.

    Maps connection ids to participants. Every read and write goes through a
    single asyncio lock, so registry mutations and broadcasts never
    interleave. The registry holds connections but does not own them: it
    never closes anything itself.
    """

    def __init__(self) -> None:
        """
        Initializes an empty registry.

        The `_participants` attribute maps `connection_id` to `Participant`
        and is only touched while `_lock` is held.
        """
        self._participants: dict[str, Participant] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._participants)

    def __contains__(self, connection: object) -> bool:
        connection_id = getattr(connection, "connection_id", None)
        return connection_id in self._participants

    async def insert(self, connection: ChatConnection, name: str) -> None:
        """
        Registers a connection under a display name.

        Args:
            connection: The connection to register.
            name: Display name announced by the client.

        Raises:
            DuplicateConnectionError: If the connection is already registered.
        """
        async with self._lock:
            if connection.connection_id in self._participants:
                raise DuplicateConnectionError(
                    f"Connection {connection.connection_id} is already registered"
                )
            self._participants[connection.connection_id] = Participant(
                connection, name
            )

        logger.debug(
            f"Connection {connection.connection_id} registered as {name!r}"
        )

    async def remove(self, connection: ChatConnection) -> str | None:
        """
        Removes a connection from the registry.

        Removing a connection that is not registered is a no-op.

        Args:
            connection: The connection to remove.

        Returns:
            The display name the connection was registered with, or None
            if it was not registered.
        """
        async with self._lock:
            participant = self._participants.pop(connection.connection_id, None)

        if participant is None:
            return None

        logger.debug(
            f"Connection {connection.connection_id} ({participant.name!r}) "
            "removed from registry"
        )
        return participant.name

    async def get_name(self, connection: ChatConnection) -> str | None:
        """
        Get the display name of a registered connection.

        Args:
            connection: The connection to look up.

        Returns:
            The display name, or None if the connection is not registered.
        """
        async with self._lock:
            participant = self._participants.get(connection.connection_id)
        return participant.name if participant else None

    async def snapshot(self) -> list[Participant]:
        """Copy of the current participants, taken under the lock."""
        async with self._lock:
            return list(self._participants.values())

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[dict[str, Participant]]:
        """
        Hold the registry lock for the duration of the block.

        Yields the live mapping of connection ids to participants. Callers
        may enumerate it and delete entries from it; no other registry
        operation can run until the block exits.

        Example:
            ```python
            async with registry.exclusive() as participants:
                for connection_id, participant in list(participants.items()):
                    ...
            ```
        """
        async with self._lock:
            yield self._participants
