from fastapi import APIRouter
from starlette.websockets import WebSocket

from relay.api.ws.websocket import HubWebSocketEndpoint
from relay.constants import WS_CHAT_PATH
from relay.logging import logger
from relay.schemas.message import InboundMessage
from relay.utils.metrics import MetricsCollector

router = APIRouter()


@router.websocket_route(WS_CHAT_PATH)
class Chat(HubWebSocketEndpoint):
    """
    Chat WebSocket endpoint.

    Every message received after the join is relayed to all participants
    through the hub, with ``user`` and ``time`` set by the server.
    """

    async def on_receive(self, websocket: WebSocket, data: InboundMessage) -> None:
        """
        Relays a client message through the hub.

        Args:
            websocket: The WebSocket connection instance
            data: The decoded client message
        """
        MetricsCollector.record_ws_message_received()

        message = await self.hub.route(self.connection, data)
        if message is None:
            logger.debug(f"Dropped message from {self.user!r}")
            return

        logger.debug(f"Relayed {message.type} from {message.user!r}")
