"""
Socket.IO server and event binding.

Creates the python-socketio AsyncServer, wires it to a SessionEventRouter,
and registers one handler per inbound event name. Handlers never raise:
any unexpected exception is logged and the event is dropped, so a single
bad message cannot take the connection (or the process) down.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import socketio

from ..config.models import AppConfig
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once
from .connection_registry import ConnectionRegistry
from .disconnect_grace_period import SessionReaper
from .event_router import SessionEventRouter
from .session_registry import SessionRegistry
from .transport import SocketIOTransport

logger = get_logger(__name__)

EventHandler = Callable[[str, Any], Awaitable[None]]


@dataclass
class RealtimeServer:
    """Everything the ASGI app and lifespan need to reach."""

    sio: socketio.AsyncServer
    registry: SessionRegistry
    connections: ConnectionRegistry
    reaper: SessionReaper
    router: SessionEventRouter


def event_handlers(router: SessionEventRouter) -> dict[str, EventHandler]:
    """Inbound event name -> router coroutine."""
    return {
        "health-check": router.health_check,
        "create-session": router.create_session,
        "join-session": router.join_session,
        "add-history-event": router.add_history_event,
        "change-sizing-technique": router.change_sizing_technique,
        "vote": router.vote,
        "start-the-voting": router.start_the_voting,
        "reveal-votes": router.reveal_votes,
        "restart-voting": router.restart_voting,
        "admin-input": router.admin_input,
        "kick-user": router.kick_user,
        "username-changed": router.username_changed,
    }


def _guarded(event: str, handler: EventHandler) -> Callable[..., Awaitable[None]]:
    async def _handle(sid: str, data: Any = None, *_extra: Any) -> None:
        try:
            await handler(sid, data)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: one failing event must not break the connection
            log_exception_once(
                logger,
                "error",
                "Unhandled error processing Socket.IO event",
                exc=e,
                socket_event=event,
                connection_id=sid,
                exc_info=True,
            )

    _handle.__name__ = f"on_{event.replace('-', '_')}"
    return _handle


def register_event_handlers(sio: socketio.AsyncServer, router: SessionEventRouter) -> None:
    """Bind connection lifecycle and every inbound event to the router."""

    async def connect(sid: str, environ: dict[str, Any], auth: Any | None = None) -> None:
        router.connect(sid)
        logger.info("Socket.IO client connected", connection_id=sid)

    async def disconnect(sid: str, *_reason: Any) -> None:
        logger.info("Socket.IO client disconnected", connection_id=sid)
        try:
            await router.disconnect(sid)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: disconnect cleanup errors are logged, not raised into engine.io
            log_exception_once(
                logger,
                "error",
                "Error cleaning up disconnected connection",
                exc=e,
                connection_id=sid,
                exc_info=True,
            )

    sio.on("connect", connect)
    sio.on("disconnect", disconnect)
    for event, handler in event_handlers(router).items():
        sio.on(event, _guarded(event, handler))

    logger.debug("Socket.IO handlers registered", events=sorted(event_handlers(router)))


def create_realtime_server(config: AppConfig) -> RealtimeServer:
    """
    Build the Socket.IO server and the session machinery behind it.

    Args:
        config: Application configuration

    Returns:
        RealtimeServer: The wired server components
    """
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=config.cors.socketio_origins,
        logger=False,
        engineio_logger=False,
    )
    transport = SocketIOTransport(sio)
    registry = SessionRegistry(default_sizing_technique=config.session.default_sizing_technique)
    connections = ConnectionRegistry()
    reaper = SessionReaper(registry, transport, grace_period=config.session.admin_grace_period_seconds)
    router = SessionEventRouter(registry, connections, transport, reaper)
    register_event_handlers(sio, router)

    logger.info(
        "Realtime server created",
        cors_allowed_origins=config.cors.socketio_origins,
        grace_period=config.session.admin_grace_period_seconds,
    )
    return RealtimeServer(sio=sio, registry=registry, connections=connections, reaper=reaper, router=router)
