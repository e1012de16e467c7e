"""Data models for the planning poker server."""

from .session import DEFAULT_SIZING_TECHNIQUE, AdminSlot, AdminState, Session

__all__ = ["DEFAULT_SIZING_TECHNIQUE", "AdminSlot", "AdminState", "Session"]
