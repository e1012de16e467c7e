"""
Centralized error types and client-facing error messages.

The titles and messages here are shown verbatim by existing clients, so
they must stay stable.
"""

from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Client-facing error types sent on the ``error`` event."""

    SESSION_NOT_FOUND = "session_not_found"
    HOST_LEFT = "host_left"


class ErrorMessages:
    """Client-facing error titles and messages."""

    SESSION_NOT_FOUND_TITLE = "Session Not Found"
    SESSION_NOT_FOUND = "This session you are attempting to connect to does not exist."

    HOST_LEFT_TITLE = "The Host Has Left"
    HOST_LEFT = "This session is no longer active since the host has left for more than {seconds} seconds."

    KICKED = "You have been kicked from the session."


def _format_seconds(seconds: float) -> str:
    return str(int(seconds)) if float(seconds).is_integer() else f"{seconds:g}"


def create_socket_error_payload(error_type: ErrorType, **params: Any) -> dict[str, str]:
    """
    Build the ``error`` event payload for a client-facing error.

    Args:
        error_type: SESSION_NOT_FOUND or HOST_LEFT
        **params: Values interpolated into the message (``seconds`` for HOST_LEFT)

    Returns:
        ``{"title": ..., "message": ...}``
    """
    if error_type is ErrorType.HOST_LEFT:
        seconds = _format_seconds(params.get("seconds", 30))
        return {"title": ErrorMessages.HOST_LEFT_TITLE, "message": ErrorMessages.HOST_LEFT.format(seconds=seconds)}
    return {"title": ErrorMessages.SESSION_NOT_FOUND_TITLE, "message": ErrorMessages.SESSION_NOT_FOUND}
