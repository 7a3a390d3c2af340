"""Unit tests for PresenceBroadcaster."""

import asyncio
from typing import Any

import pytest

from domain.entities.presence import MembershipChanged
from domain.services.presence_service import PresenceRegistry
from infrastructure.realtime.broadcast import (
    ONLINE_USERS_EVENT,
    PresenceBroadcaster,
    online_users_payload,
)


class RecordingSession:
    def __init__(self) -> None:
        self.sent: list[Any] = []

    async def send_json(self, data: Any, mode: str = "text") -> None:
        self.sent.append(data)


class ClosedSession:
    async def send_json(self, data: Any, mode: str = "text") -> None:
        raise RuntimeError("Cannot call send once a close message has been sent")


class StalledSession:
    async def send_json(self, data: Any, mode: str = "text") -> None:
        await asyncio.sleep(10)


class LaggingSession(RecordingSession):
    """Records messages, but a list with other users in it takes a while to send."""

    def __init__(self, lag: float) -> None:
        super().__init__()
        self._lag = lag

    async def send_json(self, data: Any, mode: str = "text") -> None:
        if len(data["users"]) > 1:
            await asyncio.sleep(self._lag)
        self.sent.append(data)


@pytest.fixture
def registry() -> PresenceRegistry:
    return PresenceRegistry()


@pytest.fixture
def broadcaster(registry: PresenceRegistry) -> PresenceBroadcaster:
    broadcaster = PresenceBroadcaster(registry, send_timeout=0.05)
    broadcaster.attach()
    return broadcaster


class TestPayload:
    def test_users_are_sorted(self):
        payload = online_users_payload(frozenset({"carol", "alice", "bob"}))

        assert payload == {"type": ONLINE_USERS_EVENT, "users": ["alice", "bob", "carol"]}

    def test_empty(self):
        assert online_users_payload(frozenset()) == {"type": "online_users", "users": []}


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_every_session_gets_full_list(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        alice, bob = RecordingSession(), RecordingSession()

        await registry.connect("alice", alice)
        await registry.connect("bob", bob)

        assert alice.sent[-1] == {"type": "online_users", "users": ["alice", "bob"]}
        assert bob.sent[-1] == {"type": "online_users", "users": ["alice", "bob"]}

    @pytest.mark.asyncio
    async def test_departure_is_broadcast_to_remaining(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        alice, bob = RecordingSession(), RecordingSession()
        await registry.connect("alice", alice)
        await registry.connect("bob", bob)

        await registry.disconnect("bob", bob)

        assert alice.sent[-1]["users"] == ["alice"]
        assert len(bob.sent) == 1

    @pytest.mark.asyncio
    async def test_extra_session_triggers_no_broadcast(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        first, second = RecordingSession(), RecordingSession()
        await registry.connect("alice", first)
        await registry.connect("alice", second)

        assert len(first.sent) == 1
        assert second.sent == []

    @pytest.mark.asyncio
    async def test_closed_session_does_not_block_others(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        healthy = RecordingSession()
        await registry.connect("ghost", ClosedSession())

        await registry.connect("alice", healthy)

        assert healthy.sent[-1]["users"] == ["alice", "ghost"]

    @pytest.mark.asyncio
    async def test_stalled_session_times_out(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        healthy = RecordingSession()
        await registry.connect("slow", StalledSession())

        await asyncio.wait_for(registry.connect("alice", healthy), timeout=1)

        assert healthy.sent[-1]["users"] == ["alice", "slow"]

    @pytest.mark.asyncio
    async def test_no_sessions_is_noop(
        self, registry: PresenceRegistry, broadcaster: PresenceBroadcaster
    ):
        await broadcaster.on_membership_changed(MembershipChanged(user_id="x", online=False))


class TestBroadcastOrdering:
    @pytest.mark.asyncio
    async def test_slow_send_does_not_leave_stale_list(self, registry: PresenceRegistry):
        PresenceBroadcaster(registry, send_timeout=1).attach()
        alice, bob = LaggingSession(lag=0.05), RecordingSession()
        await registry.connect("alice", alice)

        arrival = asyncio.create_task(registry.connect("bob", bob))
        await asyncio.sleep(0.01)  # alice's copy of ["alice", "bob"] is still in flight
        await registry.disconnect("bob", bob)
        await arrival

        assert await registry.list_online() == frozenset({"alice"})
        assert [message["users"] for message in alice.sent] == [
            ["alice"],
            ["alice", "bob"],
            ["alice"],
        ]

    @pytest.mark.asyncio
    async def test_concurrent_arrivals_never_shrink_the_list(self, registry: PresenceRegistry):
        PresenceBroadcaster(registry, send_timeout=1).attach()
        watcher = LaggingSession(lag=0.02)
        await registry.connect("watcher", watcher)

        await asyncio.gather(*(registry.connect(name, RecordingSession()) for name in "abc"))

        sizes = [len(message["users"]) for message in watcher.sent]
        assert sizes == sorted(sizes)
        assert watcher.sent[-1]["users"] == ["a", "b", "c", "watcher"]
