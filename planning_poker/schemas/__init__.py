"""Pydantic schemas for the planning poker server."""

from .events import (
    AdminInputPayload,
    CreateSessionPayload,
    HealthCheckPayload,
    HistoryEventPayload,
    JoinSessionPayload,
    KickUserPayload,
    SessionReferencePayload,
    SizingTechniquePayload,
    UsernameChangedPayload,
    parse_payload,
)

__all__ = [
    "AdminInputPayload",
    "CreateSessionPayload",
    "HealthCheckPayload",
    "HistoryEventPayload",
    "JoinSessionPayload",
    "KickUserPayload",
    "SessionReferencePayload",
    "SizingTechniquePayload",
    "UsernameChangedPayload",
    "parse_payload",
]
