"""Role profile service: creation, reads and every permitted mutation."""

import asyncio
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, TypeVar, cast
from uuid import UUID, uuid4

import structlog

from core.config import settings
from core.exceptions import (
    ConcurrentModificationError,
    CuratedListNotFoundError,
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
)
from domain.entities.profile import (
    ActivityEntry,
    AdminProfile,
    CuratedList,
    CuratorProfile,
    ListMovie,
    Recommendation,
    Role,
    RoleProfile,
    ViewerProfile,
    WatchlistItem,
    unique_tags,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import OperationClass, Requester, require

logger = structlog.get_logger()

P = TypeVar("P", ViewerProfile, CuratorProfile, AdminProfile)

# A mutation edits the freshly loaded document in place and reports whether
# anything changed. It may run more than once if a concurrent writer wins.
Mutation = Callable[[P], bool]


class ProfileService:
    """Service layer for role profiles.

    Each mutating method is a single read-modify-write of one document,
    committed with a version check. Losing the check means nothing was
    written, so the mutation is re-applied to a fresh read.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        max_write_attempts: int | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._max_write_attempts = max_write_attempts or settings.profile_write_max_retries

    # --- creation & reads ---

    async def create_profile(
        self,
        requester: Requester,
        owner_id: UUID,
        variant: Role,
        initial_fields: Mapping[str, Any] | None = None,
    ) -> RoleProfile:
        """Create the owner's profile for ``variant``. Unknown fields are ignored."""
        require(requester, owner_id, OperationClass.SELF_WRITE)
        profile = _build_profile(owner_id, variant, initial_fields or {})
        created = await asyncio.shield(self._insert(profile))
        logger.info("profile_created", owner_id=str(owner_id), variant=variant.value)
        return created

    async def get_profile(
        self, requester: Requester, owner_id: UUID, variant: Role
    ) -> RoleProfile:
        require(requester, owner_id, OperationClass.SELF_READ)
        async with self._uow_factory() as uow:
            profile = await uow.profiles.get(owner_id, variant)
            if profile is None:
                raise ProfileNotFoundError(str(owner_id), variant.value)
            return profile

    async def get_curated_lists(
        self, requester: Requester, curator_id: UUID
    ) -> list[CuratedList]:
        profile = await self.get_profile(requester, curator_id, Role.CURATOR)
        return cast(CuratorProfile, profile).curated_lists

    # --- viewer ---

    async def add_watchlist_item(
        self, requester: Requester, viewer_id: UUID, movie_id: str
    ) -> ViewerProfile:
        """Append a movie to the watchlist. Adding a present movie is a no-op."""
        require(requester, viewer_id, OperationClass.SELF_WRITE)

        def add(profile: ViewerProfile) -> bool:
            if profile.has_movie(movie_id):
                return False
            profile.watchlist.append(WatchlistItem(movie_id=movie_id))
            return True

        return await self._mutate(viewer_id, ViewerProfile, add)

    async def remove_watchlist_item(
        self, requester: Requester, viewer_id: UUID, movie_id: str
    ) -> ViewerProfile:
        """Drop a movie from the watchlist. Removing an absent movie is a no-op."""
        require(requester, viewer_id, OperationClass.SELF_WRITE)

        def remove(profile: ViewerProfile) -> bool:
            kept = [item for item in profile.watchlist if item.movie_id != movie_id]
            if len(kept) == len(profile.watchlist):
                return False
            profile.watchlist = kept
            return True

        return await self._mutate(viewer_id, ViewerProfile, remove)

    # --- curator ---

    async def update_expertise(
        self, requester: Requester, curator_id: UUID, tags: list[str]
    ) -> CuratorProfile:
        """Replace the expertise set as a whole."""
        require(requester, curator_id, OperationClass.SELF_WRITE)
        new_tags = unique_tags(tags)

        def replace(profile: CuratorProfile) -> bool:
            if profile.expertise == new_tags:
                return False
            profile.expertise = list(new_tags)
            return True

        return await self._mutate(curator_id, CuratorProfile, replace)

    async def create_curated_list(
        self,
        requester: Requester,
        curator_id: UUID,
        name: str,
        description: str = "",
    ) -> tuple[CuratorProfile, CuratedList]:
        """Append a new list and bump ``lists_count`` in the same write."""
        require(requester, curator_id, OperationClass.SELF_WRITE)
        # Generated once so a retried write reuses the same id
        list_id = uuid4()

        def create(profile: CuratorProfile) -> bool:
            profile.curated_lists.append(
                CuratedList(list_id=list_id, list_name=name, description=description)
            )
            profile.lists_count = len(profile.curated_lists)
            return True

        profile = await self._mutate(curator_id, CuratorProfile, create)
        curated_list = _require_list(profile, list_id)
        logger.info(
            "curated_list_created",
            curator_id=str(curator_id),
            list_id=str(list_id),
            lists_count=profile.lists_count,
        )
        return profile, curated_list

    async def update_curated_list(
        self,
        requester: Requester,
        curator_id: UUID,
        list_id: UUID,
        name: str | None = None,
        description: str | None = None,
    ) -> CuratorProfile:
        """Patch the name and/or description of one list."""
        require(requester, curator_id, OperationClass.SELF_WRITE)

        def patch(profile: CuratorProfile) -> bool:
            curated_list = _require_list(profile, list_id)
            changed = False
            if name is not None and name != curated_list.list_name:
                curated_list.list_name = name
                changed = True
            if description is not None and description != curated_list.description:
                curated_list.description = description
                changed = True
            return changed

        return await self._mutate(curator_id, CuratorProfile, patch)

    async def delete_curated_list(
        self, requester: Requester, curator_id: UUID, list_id: UUID
    ) -> CuratorProfile:
        """Remove a list and drop ``lists_count`` in the same write."""
        require(requester, curator_id, OperationClass.SELF_WRITE)

        def delete(profile: CuratorProfile) -> bool:
            curated_list = _require_list(profile, list_id)
            profile.curated_lists.remove(curated_list)
            profile.lists_count = len(profile.curated_lists)
            return True

        profile = await self._mutate(curator_id, CuratorProfile, delete)
        logger.info(
            "curated_list_deleted",
            curator_id=str(curator_id),
            list_id=str(list_id),
            lists_count=profile.lists_count,
        )
        return profile

    async def add_movie_to_list(
        self,
        requester: Requester,
        curator_id: UUID,
        list_id: UUID,
        movie: ListMovie,
    ) -> CuratorProfile:
        """Append a movie to a list unless it is already there."""
        require(requester, curator_id, OperationClass.SELF_WRITE)

        def add(profile: CuratorProfile) -> bool:
            curated_list = _require_list(profile, list_id)
            if curated_list.find_movie(movie.movie_id) is not None:
                return False
            curated_list.movies.append(
                ListMovie(
                    movie_id=movie.movie_id,
                    movie_title=movie.movie_title,
                    movie_poster=movie.movie_poster,
                )
            )
            return True

        return await self._mutate(curator_id, CuratorProfile, add)

    async def remove_movie_from_list(
        self,
        requester: Requester,
        curator_id: UUID,
        list_id: UUID,
        movie_id: str,
    ) -> CuratorProfile:
        """Remove a movie from a list. An absent movie is a no-op."""
        require(requester, curator_id, OperationClass.SELF_WRITE)

        def remove(profile: CuratorProfile) -> bool:
            curated_list = _require_list(profile, list_id)
            movie = curated_list.find_movie(movie_id)
            if movie is None:
                return False
            curated_list.movies.remove(movie)
            return True

        return await self._mutate(curator_id, CuratorProfile, remove)

    async def add_recommendation(
        self,
        requester: Requester,
        curator_id: UUID,
        movie_id: str,
        reason: str = "",
    ) -> CuratorProfile:
        require(requester, curator_id, OperationClass.SELF_WRITE)

        def append(profile: CuratorProfile) -> bool:
            profile.recommendations.append(Recommendation(movie_id=movie_id, reason=reason))
            return True

        return await self._mutate(curator_id, CuratorProfile, append)

    # --- admin ---

    async def append_activity_log(
        self,
        requester: Requester,
        admin_id: UUID,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> AdminProfile:
        """Append an entry to an admin's activity log. Existing entries are untouched."""
        require(requester, admin_id, OperationClass.ADMIN_ONLY)

        def append(profile: AdminProfile) -> bool:
            profile.activity_log.append(ActivityEntry(action=action, details=details))
            return True

        return await self._mutate(admin_id, AdminProfile, append)

    # --- internals ---

    async def _insert(self, profile: RoleProfile) -> RoleProfile:
        async with self._uow_factory() as uow:
            if await uow.profiles.get(profile.owner_id, profile.variant) is not None:
                raise ProfileAlreadyExistsError(str(profile.owner_id), profile.variant.value)
            created = await uow.profiles.create(profile)
            await uow.commit()
            return created

    async def _mutate(self, owner_id: UUID, profile_type: type[P], mutation: Mutation[P]) -> P:
        # Once admitted, the write finishes even if the caller goes away
        return await asyncio.shield(self._read_modify_write(owner_id, profile_type, mutation))

    async def _read_modify_write(
        self, owner_id: UUID, profile_type: type[P], mutation: Mutation[P]
    ) -> P:
        variant = profile_type.variant
        for attempt in range(1, self._max_write_attempts + 1):
            async with self._uow_factory() as uow:
                loaded = await uow.profiles.get(owner_id, variant)
                if loaded is None:
                    raise ProfileNotFoundError(str(owner_id), variant.value)
                profile = cast(P, loaded)

                expected_version = profile.version
                if not mutation(profile):
                    return profile

                profile.updated_at = datetime.utcnow()
                if await uow.profiles.replace(profile, expected_version):
                    await uow.commit()
                    return profile
                await uow.rollback()

            logger.info(
                "profile_write_conflict",
                owner_id=str(owner_id),
                variant=variant.value,
                attempt=attempt,
            )

        raise ConcurrentModificationError(str(owner_id), variant.value, self._max_write_attempts)


def _require_list(profile: CuratorProfile, list_id: UUID) -> CuratedList:
    curated_list = profile.find_list(list_id)
    if curated_list is None:
        raise CuratedListNotFoundError(str(list_id))
    return curated_list


def _build_profile(owner_id: UUID, variant: Role, fields: Mapping[str, Any]) -> RoleProfile:
    """Build a new profile from the subset of ``fields`` the variant accepts."""
    if variant is Role.VIEWER:
        watchlist: list[WatchlistItem] = []
        for movie_id in fields.get("watchlist") or []:
            if all(item.movie_id != str(movie_id) for item in watchlist):
                watchlist.append(WatchlistItem(movie_id=str(movie_id)))
        return ViewerProfile(owner_id=owner_id, watchlist=watchlist)

    if variant is Role.CURATOR:
        return CuratorProfile(
            owner_id=owner_id,
            expertise=unique_tags(list(fields.get("expertise") or [])),
            followers_count=int(fields.get("followers_count") or 0),
        )

    if variant is Role.ADMIN:
        return AdminProfile(owner_id=owner_id)

    raise ValueError(f"Unknown profile variant: {variant}")
