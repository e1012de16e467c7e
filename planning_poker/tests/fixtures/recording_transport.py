"""
In-memory transport used by the router tests.

Records every targeted send and room broadcast, and keeps room membership so
tests can assert who would have received a broadcast.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EmittedEvent:
    """One recorded emit."""

    target: str
    event: str
    payload: Any = None
    broadcast: bool = False


@dataclass
class RecordingTransport:
    """Transport that keeps everything in lists and dicts."""

    emitted: list[EmittedEvent] = field(default_factory=list)
    rooms: dict[str, set[str]] = field(default_factory=dict)

    async def send(self, connection_id: str, event: str, payload: Any = None) -> None:
        self.emitted.append(EmittedEvent(connection_id, event, payload))

    async def broadcast(self, room: str, event: str, payload: Any = None) -> None:
        self.emitted.append(EmittedEvent(room, event, payload, broadcast=True))

    async def join(self, connection_id: str, room: str) -> None:
        self.rooms.setdefault(room, set()).add(connection_id)

    async def leave(self, connection_id: str, room: str) -> None:
        self.rooms.get(room, set()).discard(connection_id)

    def events(self, name: str) -> list[EmittedEvent]:
        return [emitted for emitted in self.emitted if emitted.event == name]

    def last(self, name: str) -> EmittedEvent:
        matching = self.events(name)
        assert matching, f"no {name!r} event was emitted"
        return matching[-1]

    def sent_to(self, connection_id: str) -> list[EmittedEvent]:
        return [emitted for emitted in self.emitted if not emitted.broadcast and emitted.target == connection_id]

    def clear(self) -> None:
        self.emitted.clear()
