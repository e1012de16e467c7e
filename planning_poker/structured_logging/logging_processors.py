"""
Logging processors for structlog event processing.

This module provides processors for sanitizing sensitive data and for
stripping noise that third-party libraries add to the event dictionary.
"""

import re
from typing import Any

# These patterns match whole words or specific suffixes/prefixes
_SENSITIVE_PATTERNS = [
    r"\bpassword\b",
    r"\btoken\b",
    r"\bsecret\b",
    r"_key\b",
    r"^key$",
    r"\bcredential\b",
    r"\bauth\b",
    r"\bjwt\b",
    r"\bbearer\b",
    r"\bauthorization\b",
    r"\bcookie\b",
]

# Field names that should never be redacted even if they match a pattern
_SAFE_FIELDS = {
    "session_key",
    "room_key",
}


def sanitize_sensitive_data(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive data from log entries.

    Socket.IO handshakes carry headers and query strings, so anything that
    looks like a credential is redacted before it reaches a handler.

    Args:
        _logger: Logger instance (unused)
        _name: Logger name (unused)
        event_dict: Event dictionary to sanitize

    Returns:
        Sanitized event dictionary
    """

    def sanitize_dict(d: dict[str, Any]) -> dict[str, Any]:
        sanitized: dict[str, Any] = {}
        for key, value in d.items():
            if isinstance(value, dict):
                sanitized[key] = sanitize_dict(value)
                continue
            key_lower = str(key).lower()
            if key_lower in _SAFE_FIELDS:
                sanitized[key] = value
            elif any(re.search(pattern, key_lower) for pattern in _SENSITIVE_PATTERNS):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    return sanitize_dict(event_dict)


def drop_color_message_key(_logger: Any, _name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Drop the ``color_message`` key uvicorn attaches to its log records.

    It duplicates ``event`` with ANSI escapes embedded.
    """
    event_dict.pop("color_message", None)
    return event_dict
