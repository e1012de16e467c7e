"""
Enhanced structlog-based logging configuration for the planning poker server.

This module is the main entry point for the logging system. Application code
obtains loggers through get_logger(); process bootstrap calls
setup_enhanced_logging() once with the logging section of the configuration.
"""

import json
import logging
import sys
from typing import Any, cast

import structlog
from structlog.contextvars import merge_contextvars
from structlog.stdlib import BoundLogger, LoggerFactory

from planning_poker.structured_logging.logging_processors import drop_color_message_key, sanitize_sensitive_data
from planning_poker.structured_logging.logging_utilities import detect_environment

# NOTE: Infrastructure code may use structlog.get_logger() directly to avoid
# circular imports during initialization. All other modules must use
# get_logger() from this module.
logger = structlog.get_logger(__name__)

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
_SOCKETIO_LOGGERS = ("socketio", "engineio")


class _LoggingState:  # pylint: disable=too-few-public-methods
    """State container for logging initialization to avoid global statements."""

    initialized: bool = False
    signature: str | None = None


_logging_state = _LoggingState()


def _shared_processors() -> list[Any]:
    return [
        # Security first - sanitize sensitive data
        sanitize_sensitive_data,
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        drop_color_message_key,
    ]


def _select_renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer(default=str)
    if log_format == "colored":
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "logger", "event"])


def configure_enhanced_structlog(
    environment: str | None = None,
    log_level: str = "INFO",
    log_format: str = "human",
    disable_logging: bool = False,
) -> None:
    """
    Configure structlog over the standard library logging module.

    Both structlog loggers and plain stdlib loggers (uvicorn, socketio) are
    rendered by the same ProcessorFormatter so every line has one shape.

    Args:
        environment: Environment name (auto-detected if None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: One of "json", "human", "colored"
        disable_logging: Route everything to a NullHandler
    """
    if environment is None:
        environment = detect_environment()

    shared = _shared_processors()

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            _select_renderer(log_format),
        ],
    )

    handler: logging.Handler
    if disable_logging:
        handler = logging.NullHandler()
    else:
        handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level.upper())

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level, *shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=False,
    )

    configured_logger = structlog.get_logger(__name__)
    configured_logger.debug("Structlog configured", environment=environment, log_format=log_format)


def setup_enhanced_logging(
    config: dict[str, Any],
    *,
    force_reconfigure: bool = False,
) -> None:
    """
    Set up logging from the server configuration dictionary.

    Args:
        config: Server configuration dictionary (see AppConfig.to_legacy_dict)
        force_reconfigure: When True, reconfigure even if already initialized
    """
    config_signature = json.dumps(config, sort_keys=True, default=str)

    if _logging_state.initialized and not force_reconfigure:
        get_logger("planning_poker.structured_logging.setup").debug(
            "setup_enhanced_logging skipped; logging system already initialized",
            config_signature=_logging_state.signature,
        )
        return

    logging_config = config.get("logging", {})
    environment = logging_config.get("environment", detect_environment())
    log_level = logging_config.get("level", "INFO")
    log_format = logging_config.get("format", "human")
    disable_logging = logging_config.get("disable_logging", False)

    configure_enhanced_structlog(environment, log_level, log_format, disable_logging)
    _configure_enhanced_uvicorn_logging()

    get_logger("planning_poker.structured_logging.enhanced").info(
        "Enhanced logging system initialized",
        environment=environment,
        log_level=log_level,
        log_format=log_format,
        security_sanitization=True,
    )

    _logging_state.initialized = True
    _logging_state.signature = config_signature


def _configure_enhanced_uvicorn_logging() -> None:
    """Route uvicorn and socketio loggers through the root structlog handler."""
    for name in (*_UVICORN_LOGGERS, *_SOCKETIO_LOGGERS):
        third_party_logger = logging.getLogger(name)
        third_party_logger.handlers = []
        third_party_logger.propagate = True

    get_logger("uvicorn.enhanced").debug("Enhanced uvicorn logging configured")


def get_logger(name: str) -> Any:  # Returns BoundLogger but typed as Any for flexibility
    """
    Get a structlog logger with the specified name.

    This is the public API for obtaining loggers. All application code
    should use this function rather than calling structlog.get_logger()
    directly.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def log_exception_once(
    bound_logger: BoundLogger,
    level: str,
    message: str,
    *,
    exc: Exception | None = None,
    mark_logged: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log an exception once, respecting exceptions that have already been logged.

    Args:
        bound_logger: Structlog bound logger instance.
        level: Logging level to use (for example, "error" or "warning").
        message: Log message to emit.
        exc: Optional exception to include in the log entry.
        mark_logged: When True, mark the exception as logged to prevent duplicates.
        **kwargs: Additional key-value pairs for structured logging.
    """
    if exc is not None:
        if getattr(exc, "already_logged", False):
            return
        kwargs.setdefault("error_type", type(exc).__name__)
        kwargs.setdefault("error", str(exc))

    log_method = getattr(bound_logger, level.lower(), bound_logger.error)
    log_method(message, **kwargs)

    if exc is not None and mark_logged:
        marker = getattr(exc, "mark_logged", None)
        if callable(marker):
            marker()  # pylint: disable=not-callable
        else:
            cast(Any, exc).already_logged = True
