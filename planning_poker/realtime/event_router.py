"""
Event router and broadcast gateway for estimation sessions.

Each inbound event is validated, resolved to a Session, applied through the
admin election and voting modules, and the resulting state is broadcast to
the session's room. Every compound read-mutate-broadcast sequence runs under
the session's lock, so events on one session are applied one at a time in
arrival order while different sessions proceed independently. Each handler
also holds its connection's lock for its whole run, so one connection's
events never overtake each other.

Unauthorized privileged actions are ignored without any reply; existing
clients depend on that silence.
"""

import functools
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from ..error_types import ErrorMessages, ErrorType, create_socket_error_payload
from ..exceptions import ErrorContext, SessionNotFoundError, UnauthorizedActionError, ValidationError
from ..models.session import Session
from ..schemas.events import (
    AdminInputPayload,
    CreateSessionPayload,
    HealthCheckPayload,
    HistoryEventPayload,
    JoinSessionPayload,
    KickUserPayload,
    PayloadT,
    SessionReferencePayload,
    SizingTechniquePayload,
    UsernameChangedPayload,
    parse_payload,
)
from ..structured_logging.enhanced_logging_config import get_logger
from . import voting
from .admin_election import elect_on_join, handle_departure, require_admin
from .connection_registry import ConnectionRegistry, ConnectionState
from .disconnect_grace_period import SessionReaper
from .session_registry import SessionRegistry
from .transport import Transport

logger = get_logger(__name__)

RouterHandler = Callable[["SessionEventRouter", str, Any], Awaitable[None]]


def serialized_per_connection(handler: RouterHandler) -> RouterHandler:
    """
    Run an event handler while holding the sending connection's lock.

    Events queued behind a disconnect are dropped once the lock is acquired,
    since the connection they came from is gone.
    """

    @functools.wraps(handler)
    async def wrapper(self: "SessionEventRouter", connection_id: str, data: Any = None) -> None:
        state = self.connections.get(connection_id)
        async with state.lock:
            if not self.connections.is_live(state):
                logger.debug(
                    "Dropping event from closed connection", connection_id=connection_id, handler=handler.__name__
                )
                return
            await handler(self, connection_id, data)

    return wrapper


class SessionEventRouter:
    """Composition point for registry, admin election, voting and reaper."""

    def __init__(
        self,
        registry: SessionRegistry,
        connections: ConnectionRegistry,
        transport: Transport,
        reaper: SessionReaper,
    ) -> None:
        self.registry = registry
        self.connections = connections
        self.transport = transport
        self.reaper = reaper

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _parse(self, model: type[PayloadT], data: Any, connection_id: str, event: str) -> PayloadT | None:
        try:
            return parse_payload(model, data, ErrorContext(connection_id=connection_id, event=event))
        except ValidationError:
            return None

    @asynccontextmanager
    async def _session_scope(self, session_id: str | None) -> AsyncIterator[Session | None]:
        """
        Lock a session for one compound operation.

        Yields None when the session does not exist or was deleted while
        waiting for the lock.
        """
        session = self.registry.get(session_id)
        if session is None:
            yield None
            return
        async with session.lock:
            yield session if self.registry.is_registered(session) else None

    @asynccontextmanager
    async def _admin_scope(self, session_id: str, connection_id: str, action: str) -> AsyncIterator[Session | None]:
        """Like _session_scope, but also yields None for non-admin connections."""
        async with self._session_scope(session_id) as session:
            authorized = False
            if session is not None:
                try:
                    require_admin(session, connection_id, action)
                    authorized = True
                except UnauthorizedActionError:
                    pass
            yield session if authorized else None

    async def _broadcast_snapshot(self, session: Session, username: str, old_username: str | None = None) -> None:
        await self.transport.broadcast(session.session_id, "user-joined", session.snapshot(username, old_username))

    # ------------------------------------------------------------------
    # connection lifecycle
    # ------------------------------------------------------------------

    def connect(self, connection_id: str) -> ConnectionState:
        return self.connections.register(connection_id)

    async def disconnect(self, connection_id: str) -> None:
        state = self.connections.unregister(connection_id)
        if state is None:
            return
        # In-flight events from this connection finish before it departs.
        async with state.lock:
            if state.session_id is None:
                return
            await self._depart(state)
            state.detach()

    async def _depart(self, state: ConnectionState) -> None:
        """Remove a connection's user from its attached session."""
        session_id, username = state.session_id, state.username
        async with self._session_scope(session_id) as session:
            if session is None:
                return
            session.remove_user(username, drop_vote=False)
            was_admin = handle_departure(session, state.connection_id, self.reaper)
            logger.info(
                "User left session",
                session_id=session_id,
                username=username,
                connection_id=state.connection_id,
                was_admin=was_admin,
            )
            await self.transport.broadcast(
                session.session_id, "user-left", {"username": username, "users": list(session.users)}
            )

    # ------------------------------------------------------------------
    # queries and creation
    # ------------------------------------------------------------------

    @serialized_per_connection
    async def health_check(self, connection_id: str, data: Any) -> None:
        payload = self._parse(HealthCheckPayload, data, connection_id, "health-check")
        healthy = payload is not None and payload.session_id in self.registry
        await self.transport.send(connection_id, "health-callback", {"sessionHealthy": healthy})

    @serialized_per_connection
    async def create_session(self, connection_id: str, data: Any) -> None:
        payload = self._parse(CreateSessionPayload, data, connection_id, "create-session")
        if payload is None:
            return
        session = self.registry.create(payload.admin_username, admin_connection=connection_id)
        await self.transport.send(connection_id, "session-created", session.session_id)

    # ------------------------------------------------------------------
    # membership
    # ------------------------------------------------------------------

    @serialized_per_connection
    async def join_session(self, connection_id: str, data: Any) -> None:
        payload = self._parse(JoinSessionPayload, data, connection_id, "join-session")
        if payload is None:
            return
        state = self.connections.get(connection_id)

        context = ErrorContext(
            session_id=payload.session_id, connection_id=connection_id, username=payload.username, event="join-session"
        )
        try:
            self.registry.require(payload.session_id, context)
        except SessionNotFoundError:
            await self._send_session_not_found(connection_id)
            return

        if state.session_id is not None and state.session_id != payload.session_id:
            previous_room = state.session_id
            await self._depart(state)
            await self.transport.leave(connection_id, previous_room)
            state.detach()

        async with self._session_scope(payload.session_id) as session:
            if session is None:
                logger.info(
                    "Session deleted before join completed",
                    session_id=payload.session_id,
                    connection_id=connection_id,
                    username=payload.username,
                )
                await self._send_session_not_found(connection_id)
                return

            await self.transport.join(connection_id, session.session_id)
            state.attach(session.session_id, payload.username)
            is_admin = elect_on_join(session, connection_id, payload.username, self.reaper)
            session.add_user(payload.username)
            logger.info(
                "User joined session",
                session_id=session.session_id,
                username=payload.username,
                connection_id=connection_id,
                is_admin=is_admin,
            )
            await self._broadcast_snapshot(session, payload.username)

    async def _send_session_not_found(self, connection_id: str) -> None:
        await self.transport.send(connection_id, "error", create_socket_error_payload(ErrorType.SESSION_NOT_FOUND))

    @serialized_per_connection
    async def username_changed(self, connection_id: str, data: Any) -> None:
        payload = self._parse(UsernameChangedPayload, data, connection_id, "username-changed")
        if payload is None:
            return
        state = self.connections.get(connection_id)

        async with self._session_scope(payload.session_id) as session:
            if session is None:
                return
            session.remove_user(payload.old_username, drop_vote=True)
            state.username = payload.username
            session.add_user(payload.username)
            logger.info(
                "User renamed",
                session_id=session.session_id,
                old_username=payload.old_username,
                username=payload.username,
            )
            await self._broadcast_snapshot(session, payload.username, payload.old_username)

    @serialized_per_connection
    async def kick_user(self, connection_id: str, data: Any) -> None:
        payload = self._parse(KickUserPayload, data, connection_id, "kick-user")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "kick-user") as session:
            if session is None:
                return
            session.remove_user(payload.username, drop_vote=True)
            logger.info("User kicked", session_id=session.session_id, username=payload.username)
            await self.transport.broadcast(
                session.session_id, "user-kicked", {"username": payload.username, "users": list(session.users)}
            )
            for target in self.connections.connections_for(session.session_id, payload.username):
                await self.transport.send(target.connection_id, "kicked", ErrorMessages.KICKED)

    # ------------------------------------------------------------------
    # shared content
    # ------------------------------------------------------------------

    @serialized_per_connection
    async def admin_input(self, connection_id: str, data: Any) -> None:
        payload = self._parse(AdminInputPayload, data, connection_id, "admin-input")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "admin-input") as session:
            if session is None:
                return
            session.admin_submitted_text = payload.text
            await self.transport.broadcast(session.session_id, "admin-input", {"text": payload.text})

    @serialized_per_connection
    async def add_history_event(self, connection_id: str, data: Any) -> None:
        payload = self._parse(HistoryEventPayload, data, connection_id, "add-history-event")
        if payload is None:
            return

        async with self._session_scope(payload.session_id) as session:
            if session is None:
                return
            session.history.append(payload.history_event)
            await self.transport.broadcast(session.session_id, "history-updated", list(session.history))

    # ------------------------------------------------------------------
    # voting round
    # ------------------------------------------------------------------

    @serialized_per_connection
    async def vote(self, connection_id: str, data: Any) -> None:
        state = self.connections.get(connection_id)

        async with self._session_scope(state.session_id) as session:
            if session is None:
                return
            if not voting.cast_vote(session, state.username, data):
                logger.debug("Vote rejected", session_id=session.session_id, username=state.username)
                return
            await self.transport.broadcast(session.session_id, "vote", {"username": state.username, "vote": data})

    @serialized_per_connection
    async def start_the_voting(self, connection_id: str, data: Any) -> None:
        payload = self._parse(SessionReferencePayload, data, connection_id, "start-the-voting")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "start-the-voting") as session:
            if session is None:
                return
            voting.start_voting(session)
            await self.transport.broadcast(session.session_id, "voting-active")

    @serialized_per_connection
    async def reveal_votes(self, connection_id: str, data: Any) -> None:
        payload = self._parse(SessionReferencePayload, data, connection_id, "reveal-votes")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "reveal-votes") as session:
            if session is None:
                return
            if voting.reveal_votes(session):
                await self.transport.broadcast(session.session_id, "votes-revealed")

    @serialized_per_connection
    async def restart_voting(self, connection_id: str, data: Any) -> None:
        payload = self._parse(SessionReferencePayload, data, connection_id, "restart-voting")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "restart-voting") as session:
            if session is None:
                return
            voting.restart_voting(session)
            await self.transport.broadcast(session.session_id, "voting-reset")

    @serialized_per_connection
    async def change_sizing_technique(self, connection_id: str, data: Any) -> None:
        payload = self._parse(SizingTechniquePayload, data, connection_id, "change-sizing-technique")
        if payload is None:
            return

        async with self._admin_scope(payload.session_id, connection_id, "change-sizing-technique") as session:
            if session is None:
                return
            voting.change_sizing_technique(session, payload.technique)
            await self.transport.broadcast(
                session.session_id, "sizing-technique-changed", {"technique": payload.technique}
            )
