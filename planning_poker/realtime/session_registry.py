"""
Session registry for the planning poker server.

The registry is the one structure shared by every connection. All of its
methods are synchronous, so on a single asyncio event loop each call runs
to completion without interleaving with any other handler.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterator
from datetime import UTC, datetime

from ..exceptions import ErrorContext, SessionNotFoundError
from ..models.session import DEFAULT_SIZING_TECHNIQUE, Session
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


class SessionRegistry:
    """
    Owns every Session record.

    Identifiers are UUID4 strings; create() re-draws on the (astronomically
    unlikely) event of a collision so an id is never reused while its
    session is registered.
    """

    def __init__(
        self,
        default_sizing_technique: str = DEFAULT_SIZING_TECHNIQUE,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._sessions: dict[str, Session] = {}
        self.default_sizing_technique = default_sizing_technique
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    def _allocate_id(self) -> str:
        session_id = self._id_factory()
        while session_id in self._sessions:
            logger.warning("Session id collision, re-drawing", session_id=session_id)
            session_id = self._id_factory()
        return session_id

    def create(self, admin_username: str | None, admin_connection: str | None = None) -> Session:
        """
        Create and register a new session.

        Args:
            admin_username: Display name designated as admin; empty means first joiner wins
            admin_connection: Connection that requested creation; it provisionally holds admin

        Returns:
            Session: The newly registered session
        """
        session = Session(
            session_id=self._allocate_id(),
            admin_username=admin_username or None,
            plan_sizing_technique=self.default_sizing_technique,
        )
        if admin_connection is not None:
            session.admin.hold(admin_connection)
        self._sessions[session.session_id] = session
        logger.info(
            "Session created",
            session_id=session.session_id,
            admin_username=session.admin_username,
            open_session=session.is_open,
        )
        return session

    def get(self, session_id: str | None) -> Session | None:
        """Look up a session; None means "not found"."""
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def require(self, session_id: str | None, context: ErrorContext | None = None) -> Session:
        """
        Look up a session that must exist.

        Raises:
            SessionNotFoundError: If no session is registered under the id
        """
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id, context)
        return session

    def delete(self, session_id: str) -> bool:
        """
        Remove a session. Idempotent.

        Returns:
            bool: True if a session was removed
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info(
            "Session deleted",
            session_id=session_id,
            users=len(session.users),
            lifetime_seconds=round((datetime.now(UTC) - session.created_at).total_seconds(), 3),
        )
        return True

    def is_registered(self, session: Session) -> bool:
        """True if this exact record is still the registered one for its id."""
        return self._sessions.get(session.session_id) is session

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))
