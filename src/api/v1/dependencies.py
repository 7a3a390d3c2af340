"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from fastapi.requests import HTTPConnection

from domain.services.presence_service import PresenceRegistry
from domain.services.profile_service import ProfileService
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_profile_service() -> ProfileService:
    """Get Profile service instance."""
    return ProfileService(get_uow_factory())


def get_presence_registry(connection: HTTPConnection) -> PresenceRegistry:
    """Process-wide presence registry built in the app lifespan."""
    registry: PresenceRegistry = connection.app.state.presence_registry
    return registry
