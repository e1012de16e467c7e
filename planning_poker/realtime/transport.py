"""
Transport collaborator for the event router.

The router needs exactly four primitives: targeted send, room broadcast,
and joining/leaving a room. SocketIOTransport provides them over a
python-socketio AsyncServer; tests substitute an in-memory recorder.
"""

from typing import Any, Protocol

import socketio

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class Transport(Protocol):
    """Room-scoped real-time message channel."""

    async def send(self, connection_id: str, event: str, payload: Any = None) -> None: ...

    async def broadcast(self, room: str, event: str, payload: Any = None) -> None: ...

    async def join(self, connection_id: str, room: str) -> None: ...

    async def leave(self, connection_id: str, room: str) -> None: ...


class SocketIOTransport:
    """
    Transport backed by a python-socketio AsyncServer.

    A None payload is emitted with no arguments, which is what clients
    listening for bare ``voting-active`` style signals expect.
    """

    def __init__(self, sio: socketio.AsyncServer) -> None:
        self.sio = sio

    async def send(self, connection_id: str, event: str, payload: Any = None) -> None:
        logger.debug("Sending targeted event", socket_event=event, connection_id=connection_id)
        await self.sio.emit(event, payload, to=connection_id)

    async def broadcast(self, room: str, event: str, payload: Any = None) -> None:
        logger.debug("Broadcasting event", socket_event=event, room=room)
        await self.sio.emit(event, payload, to=room)

    async def join(self, connection_id: str, room: str) -> None:
        await self.sio.enter_room(connection_id, room)

    async def leave(self, connection_id: str, room: str) -> None:
        await self.sio.leave_room(connection_id, room)
