from typing import Any

import anyio
from pydantic import ValidationError
from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect

from relay.api.ws.connection import WebSocketConnection
from relay.constants import WS_DECODE_FAILED_CODE, WS_HANDSHAKE_REJECTED_CODE
from relay.logging import clear_log_context, logger, set_log_context
from relay.managers.broadcast_hub import BroadcastHub
from relay.schemas.message import InboundMessage
from relay.settings import app_settings
from relay.utils.metrics import MetricsCollector


class HubWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint that joins its connection to the broadcast hub.

    Owns the read loop of a single connection. The first message must carry
    a non-empty ``user``, which joins the connection to the hub under that
    name; otherwise the connection is closed without registration. Every
    later message is decoded and handed to `on_receive`. When the loop ends,
    for whatever reason, the connection leaves the hub exactly once.
    """

    encoding = None  # Text and binary frames are both decoded as JSON

    async def dispatch(self) -> None:
        """
        Manages the WebSocket connection lifecycle.

        The function performs the following steps:
        1. Accepts the connection and wraps it for the hub (`on_connect`).
        2. Reads the first message and joins the hub (`handshake`).
        3. Receives messages until the client disconnects, decoding each and
           passing it to `on_receive`. Undecodable data ends the loop like a
           disconnect.
        4. In the finally block, leaves the hub and closes the connection
           (`on_disconnect`). This also covers a rejected handshake and a
           cancellation that lands inside `hub.join`.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            if not await self.handshake(websocket):
                return

            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    data = await self.decode(websocket, message)
                    await self.on_receive(websocket, data)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except ValidationError as exc:
            logger.debug(
                f"Received undecodable data from {self.user!r}, "
                f"closing connection: {exc.error_count()} error(s)"
            )
            close_code = WS_DECODE_FAILED_CODE
        except WebSocketDisconnect as exc:
            close_code = exc.code
        except Exception as exc:
            # Catch-all for unexpected errors
            close_code = status.WS_1011_INTERNAL_ERROR
            raise exc
        finally:
            await self.on_disconnect(websocket, close_code)

    async def decode(
        self, websocket: WebSocket, message: dict[str, Any]
    ) -> InboundMessage:
        """
        Decode an incoming frame into an `InboundMessage`.

        Text and binary frames are both parsed as JSON.

        Raises:
            ValidationError: If the frame is not valid JSON or does not match
                the message schema.
        """
        raw = message.get("text")
        if raw is None:
            raw = message.get("bytes") or b""
        return InboundMessage.model_validate_json(raw)

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Accepts the connection and prepares it for the hub.

        The hub is taken from the application state, so every connection of
        one application shares the same registry.
        """
        await super().on_connect(websocket)

        self.hub: BroadcastHub = self.scope["app"].state.hub
        self.connection = WebSocketConnection(
            websocket, send_timeout=app_settings.WS_SEND_TIMEOUT_SECONDS
        )
        self.user: str | None = None

        set_log_context(connection_id=self.connection.connection_id[:8])
        logger.debug(
            f"Client connected to websocket (connection_id: "
            f"{self.connection.connection_id})"
        )

    async def handshake(self, websocket: WebSocket) -> bool:
        """
        Reads the first message and joins the hub with its ``user``.

        Returns:
            True if the connection joined, False if it was rejected or the
            client disconnected first.
        """
        message = await websocket.receive()
        if message["type"] != "websocket.receive":
            logger.debug("Client disconnected before joining")
            return False

        try:
            first = await self.decode(websocket, message)
        except ValidationError:
            first = None

        if first is None or not first.user:
            logger.debug(
                "First message is not a valid join, websocket connection "
                "will be closed!"
            )
            MetricsCollector.record_ws_connection_rejected("handshake")
            await self.connection.close(code=WS_HANDSHAKE_REJECTED_CODE)
            return False

        self.user = first.user
        set_log_context(user=self.user)
        MetricsCollector.record_ws_connection_accepted()
        await self.hub.join(self.connection, self.user)
        return True

    async def on_receive(self, websocket: WebSocket, data: InboundMessage) -> None:
        """Called for every message after the handshake."""

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """
        Leaves the hub and releases the connection.

        The hub ignores connections it no longer knows, so this is safe for a
        connection that never joined or was pruned during a broadcast. Runs
        shielded from cancellation, so a cancelled read loop still announces
        its departure.
        """
        with anyio.CancelScope(shield=True):
            await self.hub.leave(self.connection)
            await self.connection.close(code=close_code)

        if self.user is not None:
            MetricsCollector.record_ws_disconnection()

        logger.debug(f"Client {self.user!r} disconnected with code {close_code}")
        clear_log_context()
