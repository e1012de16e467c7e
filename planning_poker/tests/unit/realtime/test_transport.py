"""
Unit tests for the Socket.IO transport adapter.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from planning_poker.realtime.transport import SocketIOTransport


@pytest.fixture
def mock_sio():
    """AsyncServer double."""
    sio = MagicMock()
    sio.emit = AsyncMock()
    sio.enter_room = AsyncMock()
    sio.leave_room = AsyncMock()
    return sio


class TestSocketIOTransport:
    """Tests for SocketIOTransport."""

    @pytest.mark.asyncio
    async def test_send_targets_connection(self, mock_sio):
        """Test send() emits to a single sid."""
        await SocketIOTransport(mock_sio).send("sid-1", "kicked", "bye")
        mock_sio.emit.assert_awaited_once_with("kicked", "bye", to="sid-1")

    @pytest.mark.asyncio
    async def test_broadcast_targets_room(self, mock_sio):
        """Test broadcast() emits to the room named by the session id."""
        await SocketIOTransport(mock_sio).broadcast("session-1", "voting-active")
        mock_sio.emit.assert_awaited_once_with("voting-active", None, to="session-1")

    @pytest.mark.asyncio
    async def test_join_and_leave(self, mock_sio):
        """Test room membership is delegated to the server."""
        transport = SocketIOTransport(mock_sio)

        await transport.join("sid-1", "session-1")
        await transport.leave("sid-1", "session-1")

        mock_sio.enter_room.assert_awaited_once_with("sid-1", "session-1")
        mock_sio.leave_room.assert_awaited_once_with("sid-1", "session-1")
