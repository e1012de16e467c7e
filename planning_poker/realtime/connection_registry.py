"""
Connection identity tracking for the planning poker server.

Each live transport connection has a ConnectionState holding the session it
joined and the display name it currently uses. The session reference is a
plain identifier and is not invalidated when the session is deleted;
callers must resolve it through the SessionRegistry every time.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ConnectionState:
    """
    Connection-scoped attributes.

    Every event from one connection is handled while holding ``lock``, so a
    connection's events are applied in the order they arrived even when an
    earlier one is still waiting on a session lock. Always acquired before
    any session lock.
    """

    connection_id: str
    session_id: str | None = None
    username: str | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def attach(self, session_id: str, username: str) -> None:
        self.session_id = session_id
        self.username = username

    def detach(self) -> None:
        self.session_id = None
        self.username = None


class ConnectionRegistry:
    """
    Tracks live connections and their attached session/username.

    Used to resolve a connection's attributes on every inbound event and to
    address targeted messages by username within a session.
    """

    def __init__(self) -> None:
        self._connections: dict[str, ConnectionState] = {}

    def register(self, connection_id: str) -> ConnectionState:
        """Register a connection, returning the existing state if already known."""
        state = self._connections.get(connection_id)
        if state is None:
            state = ConnectionState(connection_id=connection_id)
            self._connections[connection_id] = state
            logger.debug("Connection registered", connection_id=connection_id)
        return state

    def unregister(self, connection_id: str) -> ConnectionState | None:
        state = self._connections.pop(connection_id, None)
        if state is not None:
            logger.debug(
                "Connection unregistered",
                connection_id=connection_id,
                session_id=state.session_id,
                username=state.username,
            )
        return state

    def get(self, connection_id: str) -> ConnectionState:
        """Return the state for a connection, registering it on first sight."""
        return self.register(connection_id)

    def is_live(self, state: ConnectionState) -> bool:
        """True if this exact state is still registered for its connection."""
        return self._connections.get(state.connection_id) is state

    def connections_for(self, session_id: str, username: str | None = None) -> list[ConnectionState]:
        """
        Live connections attached to a session, optionally filtered by username.

        Args:
            session_id: Session identifier
            username: When given, only connections currently using this display name

        Returns:
            list[ConnectionState]: Matching connections, possibly empty
        """
        return [
            state
            for state in self._connections.values()
            if state.session_id == session_id and (username is None or state.username == username)
        ]

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
