"""Shared fixtures for unit tests."""

import asyncio
import copy
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from core.exceptions import ProfileAlreadyExistsError
from domain.entities.profile import Role, RoleProfile
from domain.services.authorization import Requester


class FakeUnitOfWork:
    """Fake Unit of Work with a mocked profile repository."""

    def __init__(self) -> None:
        self.profiles = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class InMemoryProfileStore:
    """Version-checked document store that yields between read and write.

    Stored documents are deep-copied on the way in and out, so concurrent
    tasks each work on their own copy just like separate DB sessions.
    """

    def __init__(self) -> None:
        self.documents: dict[tuple[UUID, Role], RoleProfile] = {}
        self.writes = 0
        self.lost_races = 0

    async def get(self, owner_id: UUID, variant: Role) -> RoleProfile | None:
        await asyncio.sleep(0)
        doc = self.documents.get((owner_id, variant))
        return copy.deepcopy(doc) if doc else None

    async def create(self, profile: RoleProfile) -> RoleProfile:
        key = (profile.owner_id, profile.variant)
        if key in self.documents:
            raise ProfileAlreadyExistsError(str(profile.owner_id), profile.variant.value)
        self.documents[key] = copy.deepcopy(profile)
        return profile

    async def replace(self, profile: RoleProfile, expected_version: int) -> bool:
        await asyncio.sleep(0)
        current = self.documents.get((profile.owner_id, profile.variant))
        if current is None or current.version != expected_version:
            self.lost_races += 1
            return False
        profile.version = expected_version + 1
        self.documents[(profile.owner_id, profile.variant)] = copy.deepcopy(profile)
        self.writes += 1
        return True


class InMemoryUnitOfWork:
    """Unit of Work over an InMemoryProfileStore. Commits are implicit."""

    def __init__(self, store: InMemoryProfileStore) -> None:
        self.profiles = store

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def owner(user_id: UUID) -> Requester:
    """Requester acting on their own profiles (curator role)."""
    return Requester(id=user_id, role=Role.CURATOR)


@pytest.fixture
def stranger() -> Requester:
    """A non-admin requester who owns nothing under test."""
    return Requester(id=uuid4(), role=Role.VIEWER)


@pytest.fixture
def admin() -> Requester:
    return Requester(id=uuid4(), role=Role.ADMIN)
