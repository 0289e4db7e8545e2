"""
Tests for the chat endpoint's connection lifecycle.

The endpoint is driven directly with mocked ASGI receive/send callables,
which makes the close frames and the hub interactions easy to inspect.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import anyio
import pytest
from starlette import status

from relay.api.ws.consumers.chat import Chat
from tests.mocks.connection_mocks import sent_messages


def make_endpoint(hub, *messages):
    """
    Creates a Chat endpoint that receives the given ASGI messages.

    Returns:
        tuple: The endpoint and the mocked ASGI send callable
    """
    app = MagicMock()
    app.state.hub = hub
    receive = AsyncMock(side_effect=[{"type": "websocket.connect"}, *messages])
    send = AsyncMock()
    endpoint = Chat(
        scope={"type": "websocket", "app": app, "path": "/ws", "headers": []},
        receive=receive,
        send=send,
    )
    return endpoint, send


def text(data: str) -> dict:
    return {"type": "websocket.receive", "text": data}


DISCONNECT = {"type": "websocket.disconnect", "code": status.WS_1000_NORMAL_CLOSURE}


class TestChatLifecycle:
    """Tests for HubWebSocketEndpoint.dispatch through the Chat consumer."""

    @pytest.mark.asyncio
    async def test_disconnect_before_join(self, hub):
        """Test a client leaving before the handshake is never registered."""
        endpoint, send = make_endpoint(hub, DISCONNECT)

        await endpoint.dispatch()

        assert len(hub.registry) == 0
        assert [c.args[0]["type"] for c in send.await_args_list] == [
            "websocket.accept"
        ]

    @pytest.mark.asyncio
    async def test_rejected_handshake_closes(self, hub):
        endpoint, send = make_endpoint(hub, text('{"user": ""}'))

        await endpoint.dispatch()

        assert len(hub.registry) == 0
        assert send.await_args_list[-1].args[0] == {
            "type": "websocket.close",
            "code": status.WS_1008_POLICY_VIOLATION,
            "reason": "",
        }

    @pytest.mark.asyncio
    async def test_leave_is_announced(self, hub, mock_connection):
        """Test other participants see the endpoint's user leave."""
        other = mock_connection()
        await hub.join(other, "ann")
        endpoint, _ = make_endpoint(hub, text('{"user": "bob"}'), DISCONNECT)

        await endpoint.dispatch()

        assert [(m["type"], m["user"]) for m in sent_messages(other)] == [
            ("join", "ann"),
            ("join", "bob"),
            ("leave", "bob"),
        ]
        assert endpoint.connection not in hub.registry

    @pytest.mark.asyncio
    async def test_pruned_connection_leaves_silently(self, hub, mock_connection):
        """Test a connection pruned mid-session emits no second leave."""
        other = mock_connection()
        await hub.join(other, "ann")

        async def prune_on_receive(connection, inbound):
            await hub.registry.remove(connection)

        endpoint, _ = make_endpoint(
            hub, text('{"user": "bob"}'), text('{"text": "hi"}'), DISCONNECT
        )
        with patch.object(hub, "route", side_effect=prune_on_receive):
            await endpoint.dispatch()

        assert [m["type"] for m in sent_messages(other)] == ["join", "join"]

    @pytest.mark.asyncio
    async def test_unexpected_error_still_leaves(self, hub):
        """Test the hub entry is removed even when handling fails."""
        endpoint, send = make_endpoint(
            hub, text('{"user": "bob"}'), text('{"text": "hi"}')
        )

        with patch.object(hub, "route", side_effect=ValueError("boom")):
            with pytest.raises(ValueError):
                await endpoint.dispatch()

        assert len(hub.registry) == 0
        assert send.await_args_list[-1].args[0]["code"] == (
            status.WS_1011_INTERNAL_ERROR
        )

    @pytest.mark.asyncio
    async def test_cancelled_read_loop_announces_leave(self, hub, mock_connection):
        """Test a read loop cancelled by the server still leaves the hub."""
        bob = mock_connection()
        await hub.join(bob, "bob")
        waiting = asyncio.Event()
        messages = [{"type": "websocket.connect"}, text('{"user": "ann"}')]

        async def receive():
            if messages:
                return messages.pop(0)
            waiting.set()
            await anyio.sleep_forever()

        app = MagicMock()
        app.state.hub = hub
        endpoint = Chat(
            scope={"type": "websocket", "app": app, "path": "/ws", "headers": []},
            receive=receive,
            send=AsyncMock(),
        )

        async with anyio.create_task_group() as tg:
            tg.start_soon(endpoint.dispatch)
            await waiting.wait()
            tg.cancel_scope.cancel()

        assert [p.name for p in await hub.participants()] == ["bob"]
        assert [(m["type"], m["user"]) for m in sent_messages(bob)] == [
            ("join", "bob"),
            ("join", "ann"),
            ("leave", "ann"),
        ]
