"""Application lifecycle management for the planning poker server."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger(__name__)

__all__ = ["lifespan"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Sessions live only in memory, so startup has nothing to load. On
    shutdown every pending grace-period task is cancelled so the event loop
    can close cleanly.
    """
    realtime = app.state.realtime
    logger.info("Starting planning poker server", sessions=len(realtime.registry))

    yield

    logger.info("Shutting down planning poker server", sessions=len(realtime.registry))
    try:
        await realtime.reaper.shutdown()
    except Exception as error:  # pylint: disable=broad-exception-caught  # Reason: shutdown must complete even if cancellation fails
        log_exception_once(
            logger,
            "error",
            "Error during session reaper shutdown",
            exc=error,
            lifespan_phase="shutdown",
            exc_info=True,
        )
