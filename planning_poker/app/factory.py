"""
FastAPI application factory for the planning poker server.

This module handles FastAPI app creation, middleware configuration,
router registration, and wrapping the app in the Socket.IO ASGI app.
"""

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..api.health import health_router
from ..config import get_config
from ..config.models import AppConfig
from ..realtime.socketio_server import create_realtime_server
from ..structured_logging.enhanced_logging_config import get_logger
from .lifespan import lifespan

logger = get_logger(__name__)


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The realtime server (Socket.IO server, session registry, reaper and
    event router) is created here and attached as ``app.state.realtime``.

    Args:
        config: Application configuration; loaded with get_config() if omitted

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    config = config or get_config()

    app = FastAPI(
        title="Planning Poker API",
        description="Real-time planning poker estimation sessions over Socket.IO",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.realtime = create_realtime_server(config)

    logger.info(
        "CORS configuration",
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors.allow_origins,
        allow_methods=config.cors.allow_methods,
        allow_headers=["*"],
    )

    app.include_router(health_router)

    return app


def create_asgi_app(config: AppConfig | None = None) -> socketio.ASGIApp:
    """
    Create the full ASGI application.

    Socket.IO traffic (``/socket.io/``) is handled by the AsyncServer; all
    other requests, including lifespan events, go to the FastAPI app.

    Returns:
        socketio.ASGIApp: The ASGI entry point to serve with uvicorn
    """
    fastapi_app = create_app(config)
    return socketio.ASGIApp(fastapi_app.state.realtime.sio, other_asgi_app=fastapi_app)
