"""
Planning Poker Server - Main Application Entry Point

Sets up logging, builds the Socket.IO + FastAPI ASGI application, and runs
it with uvicorn when executed directly.
"""

from .app.factory import create_asgi_app
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger, setup_enhanced_logging

# Early logging setup - must happen before any logger creation
config = get_config()
setup_enhanced_logging(config.to_legacy_dict())

logger = get_logger(__name__)
logger.info("Logging setup completed", environment=config.logging.environment)

app = create_asgi_app(config)


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    logger.info("Starting planning poker server", host=config.server.host, port=config.server.port)
    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        reload=False,
        # Use our structlog pipeline for all logging
        access_log=True,
        use_colors=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
