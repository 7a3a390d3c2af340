"""Pydantic schemas for Role Profile API."""

from datetime import datetime
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.profile import (
    AdminProfile,
    CuratedList,
    CuratorProfile,
    RoleProfile,
    ViewerProfile,
)

# --- Requests ---


class ProfileCreate(BaseModel):
    """Initial fields for a new profile.

    Which fields are kept depends on the variant: viewers accept
    ``watchlist``, curators accept ``expertise`` and ``followers_count``.
    Anything else is dropped.
    """

    model_config = ConfigDict(extra="ignore")

    watchlist: list[str] | None = Field(None, max_length=500)
    expertise: list[str] | None = Field(None, max_length=50)
    followers_count: int | None = Field(None, ge=0)

    def initial_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class WatchlistAdd(BaseModel):
    """Schema for adding a movie to a watchlist."""

    movie_id: str = Field(..., min_length=1, max_length=100)


class ExpertiseUpdate(BaseModel):
    """Schema for replacing a curator's expertise tags."""

    tags: list[str] = Field(..., max_length=50)


class CuratedListCreate(BaseModel):
    """Schema for creating a curated list."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field("", max_length=2000)


class CuratedListUpdate(BaseModel):
    """Schema for patching a curated list."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)


class ListMovieAdd(BaseModel):
    """Schema for adding a movie to a curated list."""

    movie_id: str = Field(..., min_length=1, max_length=100)
    movie_title: str = Field("", max_length=300)
    movie_poster: str | None = Field(None, max_length=1000)


class RecommendationCreate(BaseModel):
    """Schema for a curator recommendation."""

    movie_id: str = Field(..., min_length=1, max_length=100)
    reason: str = Field("", max_length=2000)


class ActivityLogCreate(BaseModel):
    """Schema for an admin activity log entry."""

    action: str = Field(..., min_length=1, max_length=100)
    details: dict[str, Any] | None = None


# --- Responses ---


class WatchlistItemResponse(BaseModel):
    movie_id: str
    added_at: datetime


class ListMovieResponse(BaseModel):
    movie_id: str
    movie_title: str
    movie_poster: str | None = None
    added_at: datetime


class CuratedListResponse(BaseModel):
    """Schema for a curated list."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "list_id": "8f14e45f-ceea-4c6b-9e3a-1d2b3c4d5e6f",
                "list_name": "Top Noir",
                "description": "Shadows, rain and bad decisions",
                "created_at": "2026-01-28T10:00:00",
                "movies": [
                    {
                        "movie_id": "m1",
                        "movie_title": "Chinatown",
                        "movie_poster": None,
                        "added_at": "2026-01-28T10:05:00",
                    }
                ],
            }
        },
    )

    list_id: UUID
    list_name: str
    description: str
    created_at: datetime
    movies: list[ListMovieResponse]

    @classmethod
    def from_entity(cls, curated_list: CuratedList) -> "CuratedListResponse":
        return cls(
            list_id=curated_list.list_id,
            list_name=curated_list.list_name,
            description=curated_list.description,
            created_at=curated_list.created_at,
            movies=[
                ListMovieResponse(
                    movie_id=m.movie_id,
                    movie_title=m.movie_title,
                    movie_poster=m.movie_poster,
                    added_at=m.added_at,
                )
                for m in curated_list.movies
            ],
        )


class RecommendationResponse(BaseModel):
    movie_id: str
    reason: str
    created_at: datetime


class ActivityEntryResponse(BaseModel):
    action: str
    details: dict[str, Any] | None = None
    timestamp: datetime


class ProfileResponseBase(BaseModel):
    """Fields shared by every profile variant."""

    owner_id: UUID
    version: int
    created_at: datetime
    updated_at: datetime


class ViewerProfileResponse(ProfileResponseBase):
    variant: Literal["viewer"] = "viewer"
    watchlist: list[WatchlistItemResponse]


class CuratorProfileResponse(ProfileResponseBase):
    variant: Literal["curator"] = "curator"
    expertise: list[str]
    followers_count: int
    lists_count: int
    curated_lists: list[CuratedListResponse]
    recommendations: list[RecommendationResponse]


class AdminProfileResponse(ProfileResponseBase):
    variant: Literal["admin"] = "admin"
    activity_log: list[ActivityEntryResponse]


ProfileResponse = Annotated[
    Union[ViewerProfileResponse, CuratorProfileResponse, AdminProfileResponse],
    Field(discriminator="variant"),
]


class ProfileDetailResponse(BaseModel):
    """Schema for a single profile of any variant."""

    data: ProfileResponse


class CuratedListListResponse(BaseModel):
    """Schema for a curator's lists."""

    data: list[CuratedListResponse]


class CuratedListDetailResponse(BaseModel):
    """Schema for one curated list plus the owner's list count."""

    data: CuratedListResponse
    lists_count: int


def to_profile_response(
    profile: RoleProfile,
) -> ViewerProfileResponse | CuratorProfileResponse | AdminProfileResponse:
    """Convert a profile entity to the response shape for its variant."""
    header: dict[str, Any] = {
        "owner_id": profile.owner_id,
        "version": profile.version,
        "created_at": profile.created_at,
        "updated_at": profile.updated_at,
    }
    if isinstance(profile, ViewerProfile):
        return ViewerProfileResponse(
            watchlist=[
                WatchlistItemResponse(movie_id=i.movie_id, added_at=i.added_at)
                for i in profile.watchlist
            ],
            **header,
        )
    if isinstance(profile, CuratorProfile):
        return CuratorProfileResponse(
            expertise=profile.expertise,
            followers_count=profile.followers_count,
            lists_count=profile.lists_count,
            curated_lists=[CuratedListResponse.from_entity(lst) for lst in profile.curated_lists],
            recommendations=[
                RecommendationResponse(
                    movie_id=r.movie_id, reason=r.reason, created_at=r.created_at
                )
                for r in profile.recommendations
            ],
            **header,
        )
    if isinstance(profile, AdminProfile):
        return AdminProfileResponse(
            activity_log=[
                ActivityEntryResponse(action=e.action, details=e.details, timestamp=e.timestamp)
                for e in profile.activity_log
            ],
            **header,
        )
    raise TypeError(f"Unsupported profile type: {type(profile).__name__}")
