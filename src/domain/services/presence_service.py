"""In-memory presence registry.

Tracks which users have at least one live connection. One registry is built
per process at startup and shared by every connection handler; it is never
persisted and starts empty after a restart.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from domain.entities.presence import (
    MembershipChanged,
    PresenceEntry,
    PresenceSnapshot,
    SessionHandle,
)

logger = structlog.get_logger()

MembershipListener = Callable[[MembershipChanged], Awaitable[None]]


class PresenceRegistry:
    """Maps user ids to their open sessions.

    All reads and writes go through one ``asyncio.Lock``. The lock is FIFO,
    so a user's connects and disconnects are applied in the order they
    arrive and a stale disconnect can never remove a newer connection.
    Listeners run after the lock is released.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._entries: dict[str, PresenceEntry] = {}
        self._listeners: list[MembershipListener] = []

    def subscribe(self, listener: MembershipListener) -> None:
        """Register a callback for membership-changed events."""
        self._listeners.append(listener)

    async def connect(self, user_id: str, session: SessionHandle) -> bool:
        """Add a session for ``user_id``.

        Returns:
            True if the user just came online (an event was emitted).
        """
        async with self._lock:
            entry = self._entries.get(user_id)
            came_online = entry is None
            if entry is None:
                entry = PresenceEntry(user_id=user_id)
                self._entries[user_id] = entry
            entry.sessions.add(session)
            session_count = len(entry.sessions)

        logger.debug("presence_connected", user_id=user_id, sessions=session_count)
        if came_online:
            await self._emit(MembershipChanged(user_id=user_id, online=True))
        return came_online

    async def disconnect(self, user_id: str, session: SessionHandle) -> bool:
        """Remove a session for ``user_id``. Unknown sessions are ignored.

        Returns:
            True if the user just went offline (an event was emitted).
        """
        async with self._lock:
            entry = self._entries.get(user_id)
            if entry is None or session not in entry.sessions:
                return False
            entry.sessions.discard(session)
            went_offline = not entry.sessions
            if went_offline:
                del self._entries[user_id]

        logger.debug("presence_disconnected", user_id=user_id, offline=went_offline)
        if went_offline:
            await self._emit(MembershipChanged(user_id=user_id, online=False))
        return went_offline

    async def list_online(self) -> frozenset[str]:
        """Ids of users with at least one open session."""
        async with self._lock:
            return frozenset(self._entries)

    async def snapshot(self) -> PresenceSnapshot:
        """Online ids and every open session, read consistently."""
        async with self._lock:
            return PresenceSnapshot(
                online=frozenset(self._entries),
                sessions=tuple(
                    session
                    for entry in self._entries.values()
                    for session in entry.sessions
                ),
            )

    async def close(self) -> None:
        """Drop all entries and listeners at shutdown."""
        async with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        self._listeners.clear()
        logger.info("presence_registry_closed", dropped_users=dropped)

    async def _emit(self, event: MembershipChanged) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception:
                logger.exception(
                    "presence_listener_failed",
                    user_id=event.user_id,
                    online=event.online,
                )
