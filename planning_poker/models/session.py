"""
In-memory data model for estimation sessions.

A Session is owned exclusively by the SessionRegistry. Connections only
ever refer to one by its identifier.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

DEFAULT_SIZING_TECHNIQUE = "fibonacci"


class AdminState(Enum):
    """Who, if anyone, holds admin rights for a session."""

    UNSET = "unset"
    HELD = "held"
    PENDING_RECLAIM = "pending_reclaim"


@dataclass
class AdminSlot:
    """
    Tri-state admin holder.

    While PENDING_RECLAIM the departed connection is remembered for logging
    only; it no longer passes is_held_by(), so privileged actions fail until
    a join re-elects an admin.
    """

    state: AdminState = AdminState.UNSET
    connection_id: str | None = None
    reclaim_deadline: float | None = None

    def hold(self, connection_id: str) -> None:
        self.state = AdminState.HELD
        self.connection_id = connection_id
        self.reclaim_deadline = None

    def release_pending(self, deadline: float) -> None:
        self.state = AdminState.PENDING_RECLAIM
        self.reclaim_deadline = deadline

    def is_held_by(self, connection_id: str | None) -> bool:
        return self.state is AdminState.HELD and connection_id is not None and self.connection_id == connection_id

    @property
    def is_pending(self) -> bool:
        return self.state is AdminState.PENDING_RECLAIM

    def seconds_until_reclaim_expires(self, now: float | None = None) -> float | None:
        if self.reclaim_deadline is None:
            return None
        now = time.monotonic() if now is None else now
        return max(0.0, self.reclaim_deadline - now)


@dataclass
class Session:
    """One independently coordinated voting room."""

    session_id: str
    admin_username: str | None = None
    admin: AdminSlot = field(default_factory=AdminSlot)
    users: list[str] = field(default_factory=list)
    votes: dict[str, Any] = field(default_factory=dict)
    reveal: bool = False
    voting_active: bool = False
    plan_sizing_technique: str = DEFAULT_SIZING_TECHNIQUE
    admin_submitted_text: str | None = None
    history: list[Any] = field(default_factory=list)
    delete_task: asyncio.Task | None = field(default=None, repr=False)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_open(self) -> bool:
        """An open session has no designated admin name; the latest joiner becomes admin."""
        return not self.admin_username

    def add_user(self, username: str) -> bool:
        """Append a user if absent. Returns True when the list changed."""
        if username in self.users:
            return False
        self.users.append(username)
        return True

    def remove_user(self, username: str | None, *, drop_vote: bool) -> None:
        self.users = [user for user in self.users if user != username]
        if drop_vote and username is not None:
            self.votes.pop(username, None)

    def snapshot(self, username: str | None, old_username: str | None = None) -> dict[str, Any]:
        """Full session state as broadcast on every membership change."""
        payload: dict[str, Any] = {
            "username": username,
            "users": list(self.users),
            "adminUsername": self.admin_username,
            "ticketText": self.admin_submitted_text,
            "revealVotes": self.reveal,
            "votingActive": self.voting_active,
            "sessionVotes": dict(self.votes),
            "planSizingTechnique": self.plan_sizing_technique,
            "history": list(self.history),
        }
        if old_username is not None:
            payload["oldUsername"] = old_username
        return payload
