"""
Exception hierarchy for the planning poker server.

Components below the event router raise these; the router translates them
into the externally observable behaviour (a targeted error event, or
silence) and never lets one escape to the transport.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """
    Contextual information for error handling.

    Provides structured context for error reporting and debugging.
    """

    session_id: str | None = None
    connection_id: str | None = None
    username: str | None = None
    event: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "session_id": self.session_id,
            "connection_id": self.connection_id,
            "username": self.username,
            "event": self.event,
            "timestamp": self.timestamp.isoformat(),
        }


class PlanningPokerError(Exception):
    """
    Base exception for all planning poker errors.

    Provides structured error handling with context and metadata.
    Subclasses choose the level they are logged at on construction.
    """

    log_level = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.already_logged = False

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        log_method = getattr(logger, self.log_level, logger.error)
        log_method(
            "Planning poker error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def mark_logged(self) -> None:
        self.already_logged = True


class SessionNotFoundError(PlanningPokerError):
    """Referenced session does not exist (or was deleted under a stale reference)."""

    log_level = "info"

    def __init__(self, session_id: str | None, context: ErrorContext | None = None, **kwargs):
        super().__init__(f"Session not found: {session_id}", context, **kwargs)
        self.session_id = session_id
        self.details["session_id"] = session_id


class UnauthorizedActionError(PlanningPokerError):
    """A privileged action was requested by a connection that is not the session admin."""

    log_level = "debug"

    def __init__(self, message: str, context: ErrorContext | None = None, action: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.action = action
        if action:
            self.details["action"] = action


class ValidationError(PlanningPokerError):
    """Inbound payload failed validation."""

    log_level = "warning"

    def __init__(self, message: str, context: ErrorContext | None = None, field: str | None = None, **kwargs):
        super().__init__(message, context, **kwargs)
        self.field = field
        if field:
            self.details["field"] = field
