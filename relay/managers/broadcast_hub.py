import asyncio
import time
from datetime import datetime
from typing import Any, Callable

from relay.constants import WS_PRUNED_CODE
from relay.logging import logger
from relay.managers.connection_registry import ConnectionRegistry, Participant
from relay.protocols import ChatConnection
from relay.schemas.message import (
    ChatMessage,
    InboundMessage,
    MessageType,
    format_timestamp,
    utc_now,
)
from relay.utils.metrics import MetricsCollector


def normalize_message(
    inbound: InboundMessage, name: str, now: datetime
) -> ChatMessage:
    """
    Turn a client message into the canonical message that gets broadcast.

    The type defaults to ``msg``; ``user`` and ``time`` are always taken from
    the server, whatever the client sent.

    Args:
        inbound: Message as decoded from the client.
        name: Display name the sending connection joined with.
        now: Current time.

    Returns:
        ChatMessage: The outbound message.
    """
    return ChatMessage(
        type=inbound.type or MessageType.MSG,
        user=name,
        text=inbound.text,
        time=format_timestamp(now),
    )


def is_deliverable(message: ChatMessage) -> bool:
    """Chat messages without text are never broadcast."""
    return not (message.type == MessageType.MSG and not message.text)


class BroadcastHub:
    """
    Coordinates the connection registry with broadcast fan-out.

    Read loops talk to the hub only through `join`, `route` and `leave`.
    Every broadcast runs inside the registry's critical section and prunes
    connections whose delivery fails, so a connection that has proven
    unwritable never survives past the broadcast that found out.
    """

    def __init__(
        self,
        registry: ConnectionRegistry | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Initializes the hub.

        Args:
            registry: Registry to coordinate. A new one is created if omitted.
            clock: Source of the current time for message timestamps.
        """
        self.registry = registry if registry is not None else ConnectionRegistry()
        self.clock = clock

    async def join(self, connection: ChatConnection, name: str) -> None:
        """
        Registers a connection and announces it to everyone, itself included.

        Args:
            connection: The connection that completed the handshake.
            name: Display name from the first message.
        """
        await self.registry.insert(connection, name)
        MetricsCollector.set_participants(len(self.registry))
        logger.info(f"{name!r} joined ({connection.connection_id})")

        await self.broadcast(self._notice(MessageType.JOIN, name, "joined"))

    async def leave(self, connection: ChatConnection) -> None:
        """
        Unregisters a connection and announces its departure to the rest.

        Does nothing for a connection that never joined or was already
        removed (e.g. pruned). The connection is removed before the notice is
        broadcast, so it never receives its own leave message.

        Args:
            connection: The connection whose read loop ended.
        """
        name = await self.registry.remove(connection)
        if name is None:
            return

        MetricsCollector.set_participants(len(self.registry))
        logger.info(f"{name!r} left ({connection.connection_id})")

        await self.broadcast(self._notice(MessageType.LEAVE, name, "left"))

    async def route(
        self, connection: ChatConnection, inbound: InboundMessage
    ) -> ChatMessage | None:
        """
        Normalizes a message from a joined connection and broadcasts it.

        Args:
            connection: The sending connection.
            inbound: The decoded client message.

        Returns:
            The broadcast message, or None if the message was dropped
            (empty chat text, or the sender is no longer registered).
        """
        name = await self.registry.get_name(connection)
        if name is None:
            logger.debug(
                f"Dropping message from unregistered connection "
                f"{connection.connection_id}"
            )
            MetricsCollector.record_ws_message_dropped("not_registered")
            return None

        message = normalize_message(inbound, name, self.clock())
        if not is_deliverable(message):
            MetricsCollector.record_ws_message_dropped("empty_text")
            return None

        await self.broadcast(message)
        return message

    async def broadcast(self, message: ChatMessage) -> int:
        """
        Delivers a message to every registered connection.

        Deliveries run concurrently while the registry lock is held. Each
        connection whose delivery fails is closed and removed before the lock
        is released. Failures are not reported to the caller; once the lock
        is released, a leave notice is broadcast for every pruned connection.

        Args:
            message: The message to deliver.

        Returns:
            int: Number of connections the message was delivered to.
        """
        start_time = time.perf_counter()
        payload = message.model_dump(mode="json")

        async with self.registry.exclusive() as participants:
            recipients = list(participants.items())
            results = await asyncio.gather(
                *[self._deliver(p, payload) for _, p in recipients]
            )

            pruned = []
            for (connection_id, participant), delivered in zip(
                recipients, results
            ):
                if delivered:
                    continue
                del participants[connection_id]
                pruned.append(participant)
                try:
                    await participant.connection.close(WS_PRUNED_CODE)
                except Exception as e:
                    logger.warning(
                        f"Failed to close pruned connection "
                        f"{connection_id} ({participant.name!r}): {e}"
                    )

            remaining = len(participants)

        if pruned:
            MetricsCollector.record_connections_pruned(len(pruned))
            MetricsCollector.set_participants(remaining)
            logger.info(
                "Pruned dead connections: "
                + ", ".join(
                    f"{p.name!r} ({p.connection.connection_id})" for p in pruned
                )
            )

        MetricsCollector.record_broadcast(
            message.type.value, time.perf_counter() - start_time
        )

        # Pruned participants never reach `leave` with an entry left, so
        # their departure is announced here, each in its own broadcast.
        for participant in pruned:
            await self.broadcast(
                self._notice(MessageType.LEAVE, participant.name, "left")
            )

        return len(recipients) - len(pruned)

    async def participants(self) -> list[Participant]:
        """Current participants, in join order."""
        return await self.registry.snapshot()

    async def _deliver(
        self, participant: Participant, payload: dict[str, Any]
    ) -> bool:
        """
        Attempts one delivery. Any exception from the connection counts as a
        failed delivery.
        """
        connection = participant.connection
        try:
            return bool(await connection.send(payload))
        except Exception as e:
            # Catch-all for connection implementations that raise instead of
            # reporting failure
            logger.warning(
                f"Unexpected error sending to connection "
                f"{connection.connection_id} ({participant.name!r}): {e}"
            )
            return False

    def _notice(self, kind: MessageType, name: str, verb: str) -> ChatMessage:
        return ChatMessage(
            type=kind,
            user=name,
            text=f"{name} {verb}",
            time=format_timestamp(self.clock()),
        )
