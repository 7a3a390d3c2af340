"""SQLAlchemy implementation of the role profile document store."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ProfileAlreadyExistsError
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
)
from infrastructure.database.errors import store_errors
from infrastructure.database.models import RoleProfileModel


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, owner_id: UUID, variant: Role) -> RoleProfile | None:
        """Get the profile document for an owner and variant."""
        stmt = select(RoleProfileModel).where(
            RoleProfileModel.owner_id == owner_id,
            RoleProfileModel.variant == variant.value,
        )
        async with store_errors("profile.get"):
            result = await self._session.execute(stmt)
            model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, profile: RoleProfile) -> RoleProfile:
        """Insert a new document; the unique constraint rejects duplicates."""
        model = self._to_model(profile)
        async with store_errors("profile.create"):
            self._session.add(model)
            try:
                await self._session.flush()
            except IntegrityError as e:
                await self._session.rollback()
                raise ProfileAlreadyExistsError(
                    str(profile.owner_id), profile.variant.value
                ) from e
        return self._to_entity(model)

    async def replace(self, profile: RoleProfile, expected_version: int) -> bool:
        """Compare-and-swap the document body on ``version``."""
        stmt = (
            update(RoleProfileModel)
            .where(
                RoleProfileModel.owner_id == profile.owner_id,
                RoleProfileModel.variant == profile.variant.value,
                RoleProfileModel.version == expected_version,
            )
            .values(
                document=_encode_document(profile),
                version=expected_version + 1,
                updated_at=profile.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        async with store_errors("profile.replace"):
            result = await self._session.execute(stmt)

        if result.rowcount != 1:
            return False
        profile.version = expected_version + 1
        return True

    def _to_entity(self, model: RoleProfileModel) -> RoleProfile:
        """Convert ORM model to domain entity."""
        return _decode_document(
            Role(model.variant),
            model.owner_id,
            model.document or {},
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: RoleProfile) -> RoleProfileModel:
        """Convert domain entity to ORM model."""
        return RoleProfileModel(
            owner_id=entity.owner_id,
            variant=entity.variant.value,
            document=_encode_document(entity),
            version=entity.version,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )


# --- document codec ---
# Bodies are plain JSON: datetimes as ISO strings, UUIDs as strings.


def _ts(value: datetime) -> str:
    return value.isoformat()


def _parse_ts(value: str | None) -> datetime:
    return datetime.fromisoformat(value) if value else datetime.utcnow()


def _encode_document(profile: RoleProfile) -> dict[str, Any]:
    if isinstance(profile, ViewerProfile):
        return {
            "watchlist": [
                {"movie_id": item.movie_id, "added_at": _ts(item.added_at)}
                for item in profile.watchlist
            ],
        }
    if isinstance(profile, CuratorProfile):
        return {
            "expertise": list(profile.expertise),
            "followers_count": profile.followers_count,
            "lists_count": profile.lists_count,
            "curated_lists": [
                {
                    "list_id": str(lst.list_id),
                    "list_name": lst.list_name,
                    "description": lst.description,
                    "created_at": _ts(lst.created_at),
                    "movies": [
                        {
                            "movie_id": movie.movie_id,
                            "movie_title": movie.movie_title,
                            "movie_poster": movie.movie_poster,
                            "added_at": _ts(movie.added_at),
                        }
                        for movie in lst.movies
                    ],
                }
                for lst in profile.curated_lists
            ],
            "recommendations": [
                {
                    "movie_id": rec.movie_id,
                    "reason": rec.reason,
                    "created_at": _ts(rec.created_at),
                }
                for rec in profile.recommendations
            ],
        }
    if isinstance(profile, AdminProfile):
        return {
            "activity_log": [
                {
                    "action": entry.action,
                    "details": entry.details,
                    "timestamp": _ts(entry.timestamp),
                }
                for entry in profile.activity_log
            ],
        }
    raise TypeError(f"Unsupported profile type: {type(profile).__name__}")


def _decode_document(
    variant: Role,
    owner_id: UUID,
    doc: dict[str, Any],
    *,
    version: int,
    created_at: datetime,
    updated_at: datetime,
) -> RoleProfile:
    header: dict[str, Any] = {
        "owner_id": owner_id,
        "version": version,
        "created_at": created_at,
        "updated_at": updated_at,
    }

    if variant is Role.VIEWER:
        return ViewerProfile(
            watchlist=[
                WatchlistItem(movie_id=item["movie_id"], added_at=_parse_ts(item.get("added_at")))
                for item in doc.get("watchlist", [])
            ],
            **header,
        )

    if variant is Role.CURATOR:
        curated_lists = [
            CuratedList(
                list_id=UUID(lst["list_id"]),
                list_name=lst.get("list_name", ""),
                description=lst.get("description", ""),
                created_at=_parse_ts(lst.get("created_at")),
                movies=[
                    ListMovie(
                        movie_id=movie["movie_id"],
                        movie_title=movie.get("movie_title", ""),
                        movie_poster=movie.get("movie_poster"),
                        added_at=_parse_ts(movie.get("added_at")),
                    )
                    for movie in lst.get("movies", [])
                ],
            )
            for lst in doc.get("curated_lists", [])
        ]
        return CuratorProfile(
            expertise=list(doc.get("expertise", [])),
            followers_count=doc.get("followers_count", 0),
            lists_count=doc.get("lists_count", len(curated_lists)),
            curated_lists=curated_lists,
            recommendations=[
                Recommendation(
                    movie_id=rec["movie_id"],
                    reason=rec.get("reason", ""),
                    created_at=_parse_ts(rec.get("created_at")),
                )
                for rec in doc.get("recommendations", [])
            ],
            **header,
        )

    if variant is Role.ADMIN:
        return AdminProfile(
            activity_log=[
                ActivityEntry(
                    action=entry["action"],
                    details=entry.get("details"),
                    timestamp=_parse_ts(entry.get("timestamp")),
                )
                for entry in doc.get("activity_log", [])
            ],
            **header,
        )

    raise ValueError(f"Unknown profile variant: {variant}")
