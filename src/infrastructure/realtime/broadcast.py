"""Presence broadcast over live sessions."""

import asyncio

import structlog

from domain.entities.presence import MembershipChanged, SessionHandle
from domain.services.presence_service import PresenceRegistry

logger = structlog.get_logger()

ONLINE_USERS_EVENT = "online_users"


def online_users_payload(online: frozenset[str]) -> dict[str, object]:
    """Message pushed to clients: the full list, never a diff."""
    return {"type": ONLINE_USERS_EVENT, "users": sorted(online)}


class PresenceBroadcaster:
    """Pushes the online-user list to every session on membership change.

    Delivery is best effort per session. A closed or slow session is logged
    and skipped; it never blocks delivery to the others.

    Fan-outs run one at a time, in event order, each from a snapshot taken
    under the fan-out lock. A session therefore never receives an older list
    after a newer one.
    """

    def __init__(self, registry: PresenceRegistry, send_timeout: float = 5.0) -> None:
        self._registry = registry
        self._send_timeout = send_timeout
        self._fanout_lock = asyncio.Lock()

    def attach(self) -> None:
        """Subscribe to the registry's membership-changed events."""
        self._registry.subscribe(self.on_membership_changed)

    async def on_membership_changed(self, event: MembershipChanged) -> None:
        async with self._fanout_lock:
            snapshot = await self._registry.snapshot()
            if not snapshot.sessions:
                return

            payload = online_users_payload(snapshot.online)
            results = await asyncio.gather(
                *(self._deliver(session, payload) for session in snapshot.sessions)
            )
        failed = results.count(False)
        logger.debug(
            "presence_broadcast",
            user_id=event.user_id,
            online=event.online,
            recipients=len(results),
            failed=failed,
        )

    async def _deliver(self, session: SessionHandle, payload: dict[str, object]) -> bool:
        try:
            await asyncio.wait_for(session.send_json(payload), timeout=self._send_timeout)
        except Exception as e:
            logger.warning(
                "presence_delivery_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True
