"""Presence domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol


class SessionHandle(Protocol):
    """A live client connection that can receive JSON pushes.

    ``fastapi.WebSocket`` satisfies this protocol.
    """

    async def send_json(self, data: Any, mode: str = "text") -> None:
        ...


@dataclass
class PresenceEntry:
    """Sessions currently open for one online user."""

    user_id: str
    sessions: set[SessionHandle] = field(default_factory=set)
    connected_at: datetime = field(default_factory=datetime.utcnow)


@dataclass(frozen=True, slots=True)
class MembershipChanged:
    """Fired when a user comes online or goes offline."""

    user_id: str
    online: bool


@dataclass(frozen=True, slots=True)
class PresenceSnapshot:
    """Read-only view of the registry taken under a single lock acquisition."""

    online: frozenset[str]
    sessions: tuple[SessionHandle, ...]
