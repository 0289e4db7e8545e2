import asyncio
import uuid
from typing import Any

from starlette import status
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from relay.logging import logger


class WebSocketConnection:
    """
    Adapts a Starlette WebSocket to the `ChatConnection` protocol.

    Each adapter gets a random `connection_id` that identifies it in the
    registry for the lifetime of the session. Sends report failure instead of
    raising, and closing is idempotent, since both the hub (when pruning) and
    the endpoint (when its read loop ends) may close the same socket.
    """

    def __init__(
        self, websocket: WebSocket, send_timeout: float | None = None
    ) -> None:
        """
        Args:
            websocket: An accepted WebSocket.
            send_timeout: Seconds a single send may take before it is
                treated as failed. None waits indefinitely.
        """
        self.websocket = websocket
        self.send_timeout = send_timeout
        self.connection_id = str(uuid.uuid4())
        self._closed = False

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.connection_id}>"

    @property
    def closed(self) -> bool:
        return (
            self._closed
            or self.websocket.application_state == WebSocketState.DISCONNECTED
            or self.websocket.client_state == WebSocketState.DISCONNECTED
        )

    async def send(self, message: dict[str, Any]) -> bool:
        """
        Sends a message as a JSON text frame.

        Args:
            message: JSON-serializable message payload.

        Returns:
            True if the frame was written, False otherwise.
        """
        if self.closed:
            return False

        try:
            await asyncio.wait_for(
                self.websocket.send_json(message), timeout=self.send_timeout
            )
            return True
        except TimeoutError:
            logger.warning(
                f"Send to connection {self.connection_id} timed out after "
                f"{self.send_timeout}s"
            )
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            # WebSocketDisconnect: Client disconnected
            # ConnectionError: Network errors
            # RuntimeError: WebSocket in invalid state
            logger.warning(
                f"Failed to send to connection {self.connection_id}: {e}"
            )
        return False

    async def close(self, code: int = status.WS_1000_NORMAL_CLOSURE) -> None:
        """
        Closes the WebSocket if it is still open.

        The close frame is bounded by the same timeout as sends. A close that
        times out or fails still leaves the connection marked closed.

        Args:
            code: WebSocket close code.
        """
        if self.closed:
            return

        self._closed = True
        try:
            await asyncio.wait_for(
                self.websocket.close(code=code), timeout=self.send_timeout
            )
        except TimeoutError:
            logger.warning(
                f"Close of connection {self.connection_id} timed out after "
                f"{self.send_timeout}s"
            )
        except (WebSocketDisconnect, ConnectionError, RuntimeError) as e:
            logger.debug(f"Connection {self.connection_id} already closed: {e}")
