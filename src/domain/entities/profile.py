"""Role profile domain entities.

A user holds at most one profile per role. The three variants share the
ownership/timestamp/version header but otherwise have unrelated shapes, so
they are modelled as a closed union rather than a class hierarchy.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias
from uuid import UUID, uuid4


class Role(StrEnum):
    """Platform role. Each role owns exactly one profile variant."""

    VIEWER = "viewer"
    CURATOR = "curator"
    ADMIN = "admin"


@dataclass
class WatchlistItem:
    """A movie queued on a viewer's watchlist."""

    movie_id: str
    added_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ListMovie:
    """A movie entry inside a curated list."""

    movie_id: str
    movie_title: str = ""
    movie_poster: str | None = None
    added_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class CuratedList:
    """A named, ordered collection of movies owned by one curator."""

    list_name: str
    description: str = ""
    list_id: UUID = field(default_factory=uuid4)
    movies: list[ListMovie] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def find_movie(self, movie_id: str) -> ListMovie | None:
        return next((m for m in self.movies if m.movie_id == movie_id), None)


@dataclass
class Recommendation:
    """A curator's recommendation. Append-only."""

    movie_id: str
    reason: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ActivityEntry:
    """A single admin activity log line. Never mutated after append."""

    action: str
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ViewerProfile:
    """Viewer role state: a watchlist with unique movie ids."""

    variant: ClassVar[Role] = Role.VIEWER

    owner_id: UUID
    watchlist: list[WatchlistItem] = field(default_factory=list)
    version: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def has_movie(self, movie_id: str) -> bool:
        return any(item.movie_id == movie_id for item in self.watchlist)


@dataclass
class CuratorProfile:
    """Curator role state.

    ``lists_count`` mirrors ``len(curated_lists)``. Only the profile service
    touches ``curated_lists`` and it resyncs the counter in the same write.
    """

    variant: ClassVar[Role] = Role.CURATOR

    owner_id: UUID
    expertise: list[str] = field(default_factory=list)
    followers_count: int = 0
    lists_count: int = 0
    curated_lists: list[CuratedList] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    version: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def find_list(self, list_id: UUID) -> CuratedList | None:
        return next((lst for lst in self.curated_lists if lst.list_id == list_id), None)


@dataclass
class AdminProfile:
    """Admin role state: an append-only activity log."""

    variant: ClassVar[Role] = Role.ADMIN

    owner_id: UUID
    activity_log: list[ActivityEntry] = field(default_factory=list)
    version: int = 1
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


RoleProfile: TypeAlias = ViewerProfile | CuratorProfile | AdminProfile

PROFILE_TYPES: dict[Role, type[RoleProfile]] = {
    Role.VIEWER: ViewerProfile,
    Role.CURATOR: CuratorProfile,
    Role.ADMIN: AdminProfile,
}


def unique_tags(tags: list[str]) -> list[str]:
    """Strip and deduplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
