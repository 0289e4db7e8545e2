"""
Tests for the WebSocket transport adapter.

The adapter turns Starlette WebSocket errors into failed sends and makes
closing idempotent.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect, WebSocketState

from relay.api.ws.connection import WebSocketConnection
from relay.protocols import ChatConnection
from tests.mocks.connection_mocks import create_mock_websocket


class TestWebSocketConnection:
    """Tests for WebSocketConnection class."""

    def test_implements_protocol(self):
        connection = WebSocketConnection(create_mock_websocket())

        assert isinstance(connection, ChatConnection)

    def test_connection_ids_are_unique(self):
        ws = create_mock_websocket()

        assert (
            WebSocketConnection(ws).connection_id
            != WebSocketConnection(ws).connection_id
        )

    @pytest.mark.asyncio
    async def test_send(self):
        """Test a successful send writes JSON and reports success."""
        ws = create_mock_websocket()
        connection = WebSocketConnection(ws)

        assert await connection.send({"type": "msg", "text": "hi"}) is True
        ws.send_json.assert_awaited_once_with({"type": "msg", "text": "hi"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            WebSocketDisconnect(code=1006),
            ConnectionError("reset by peer"),
            RuntimeError('Cannot call "send" once a close message has been sent.'),
        ],
    )
    async def test_send_failure(self, error):
        """Test transport errors are reported as a failed delivery."""
        ws = create_mock_websocket()
        ws.send_json = AsyncMock(side_effect=error)
        connection = WebSocketConnection(ws)

        assert await connection.send({"text": "hi"}) is False

    @pytest.mark.asyncio
    async def test_send_timeout(self):
        """Test a send slower than the timeout counts as failed."""
        ws = create_mock_websocket()

        async def slow_send(message):
            await asyncio.sleep(1)

        ws.send_json = AsyncMock(side_effect=slow_send)
        connection = WebSocketConnection(ws, send_timeout=0.01)

        assert await connection.send({"text": "hi"}) is False

    @pytest.mark.asyncio
    async def test_send_on_disconnected_socket(self):
        """Test sends to a socket the client closed are not attempted."""
        ws = create_mock_websocket()
        ws.client_state = WebSocketState.DISCONNECTED
        connection = WebSocketConnection(ws)

        assert await connection.send({"text": "hi"}) is False
        ws.send_json.assert_not_called()

    @pytest.mark.asyncio
    async def test_close(self):
        ws = create_mock_websocket()
        connection = WebSocketConnection(ws)

        await connection.close(code=1011)

        ws.close.assert_awaited_once_with(code=1011)
        assert connection.closed

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Test only the first close reaches the socket."""
        ws = create_mock_websocket()
        connection = WebSocketConnection(ws)

        await connection.close()
        await connection.close()

        ws.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_after_client_disconnect(self):
        ws = create_mock_websocket()
        ws.client_state = WebSocketState.DISCONNECTED
        connection = WebSocketConnection(ws)

        await connection.close()

        ws.close.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("already closed"),
            WebSocketDisconnect(code=1006),
            ConnectionError("reset by peer"),
        ],
    )
    async def test_close_error_is_ignored(self, error):
        """Test a socket closed concurrently or with a dead transport does not raise."""
        ws = create_mock_websocket()
        ws.close = AsyncMock(side_effect=error)
        connection = WebSocketConnection(ws)

        await connection.close()

        assert connection.closed

    @pytest.mark.asyncio
    async def test_close_timeout(self):
        """Test a close frame slower than the timeout does not block."""
        ws = create_mock_websocket()

        async def slow_close(code):
            await asyncio.sleep(3600)

        ws.close = AsyncMock(side_effect=slow_close)
        connection = WebSocketConnection(ws, send_timeout=0.01)

        await asyncio.wait_for(connection.close(), timeout=1)

        assert connection.closed

    @pytest.mark.asyncio
    async def test_send_after_close(self):
        ws = create_mock_websocket()
        connection = WebSocketConnection(ws)
        await connection.close()

        assert await connection.send({"text": "hi"}) is False
        ws.send_json.assert_not_called()
