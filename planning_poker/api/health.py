"""
Health API endpoints.

Process-level liveness for load balancers, and a per-session check the
browser client can use before opening a Socket.IO connection.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request

from ..realtime.session_registry import SessionRegistry
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

health_router = APIRouter(tags=["health"])


def _resolve_session_registry(request: Request) -> SessionRegistry:
    realtime = getattr(request.app.state, "realtime", None)
    if realtime is None:
        logger.error("Health check requested before realtime server was attached")
        raise HTTPException(status_code=503, detail="Service temporarily unavailable")
    return realtime.registry


@health_router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Liveness check with the number of active sessions."""
    registry = _resolve_session_registry(request)
    return {"status": "ok", "sessions": len(registry)}


@health_router.get("/api/sessions/{session_id}/health")
async def session_health(session_id: str, request: Request) -> dict[str, bool]:
    """Same answer as the ``health-check`` socket event, over HTTP."""
    registry = _resolve_session_registry(request)
    healthy = session_id in registry
    logger.debug("Session health requested", session_id=session_id, healthy=healthy)
    return {"sessionHealthy": healthy}
