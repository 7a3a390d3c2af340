"""Role profile API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentRequester
from api.v1.dependencies import get_profile_service
from api.v1.schemas.profile import (
    ActivityLogCreate,
    CuratedListCreate,
    CuratedListDetailResponse,
    CuratedListListResponse,
    CuratedListResponse,
    CuratedListUpdate,
    ExpertiseUpdate,
    ListMovieAdd,
    ProfileCreate,
    ProfileDetailResponse,
    RecommendationCreate,
    WatchlistAdd,
    to_profile_response,
)
from core.exceptions import CuratedListNotFoundError
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.profile import CuratorProfile, ListMovie, Role
from domain.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _list_detail(profile: CuratorProfile, list_id: UUID) -> CuratedListDetailResponse:
    curated_list = profile.find_list(list_id)
    if curated_list is None:
        raise CuratedListNotFoundError(str(list_id))
    return CuratedListDetailResponse(
        data=CuratedListResponse.from_entity(curated_list),
        lists_count=profile.lists_count,
    )


# --- Any variant ---


@router.post(
    "/{variant}/{owner_id}",
    response_model=ProfileDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a role profile",
    responses={
        201: {"description": "Profile created successfully"},
        403: {"description": "Not allowed to create this profile"},
        409: {"description": "Profile of this variant already exists"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_profile(
    request: Request,
    variant: Role,
    owner_id: UUID,
    body: ProfileCreate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Create the owner's profile for a variant. Fields the variant does not use are ignored."""
    profile = await service.create_profile(requester, owner_id, variant, body.initial_fields())
    return ProfileDetailResponse(data=to_profile_response(profile))


@router.get(
    "/{variant}/{owner_id}",
    response_model=ProfileDetailResponse,
    summary="Get a role profile",
    responses={
        200: {"description": "Profile found"},
        404: {"description": "Profile not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_profile(
    request: Request,
    variant: Role,
    owner_id: UUID,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Fetch the owner's profile for a variant."""
    profile = await service.get_profile(requester, owner_id, variant)
    return ProfileDetailResponse(data=to_profile_response(profile))


# --- Viewer ---


@router.post(
    "/viewer/{owner_id}/watchlist",
    response_model=ProfileDetailResponse,
    summary="Add a movie to the watchlist",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_watchlist_item(
    request: Request,
    owner_id: UUID,
    body: WatchlistAdd,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Add a movie to the watchlist. Idempotent if already present."""
    profile = await service.add_watchlist_item(requester, owner_id, body.movie_id)
    return ProfileDetailResponse(data=to_profile_response(profile))


@router.delete(
    "/viewer/{owner_id}/watchlist/{movie_id}",
    response_model=ProfileDetailResponse,
    summary="Remove a movie from the watchlist",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_watchlist_item(
    request: Request,
    owner_id: UUID,
    movie_id: str,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    """Remove a movie from the watchlist. Succeeds even if it was not there."""
    profile = await service.remove_watchlist_item(requester, owner_id, movie_id)
    return ProfileDetailResponse(data=to_profile_response(profile))


# --- Curator ---


@router.put(
    "/curator/{owner_id}/expertise",
    response_model=ProfileDetailResponse,
    summary="Replace curator expertise",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_expertise(
    request: Request,
    owner_id: UUID,
    body: ExpertiseUpdate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    profile = await service.update_expertise(requester, owner_id, body.tags)
    return ProfileDetailResponse(data=to_profile_response(profile))


@router.post(
    "/curator/{owner_id}/recommendations",
    response_model=ProfileDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a recommendation",
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_recommendation(
    request: Request,
    owner_id: UUID,
    body: RecommendationCreate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    profile = await service.add_recommendation(requester, owner_id, body.movie_id, body.reason)
    return ProfileDetailResponse(data=to_profile_response(profile))


@router.get(
    "/curator/{owner_id}/lists",
    response_model=CuratedListListResponse,
    summary="List curated lists",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_curated_lists(
    request: Request,
    owner_id: UUID,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> CuratedListListResponse:
    lists = await service.get_curated_lists(requester, owner_id)
    return CuratedListListResponse(data=[CuratedListResponse.from_entity(lst) for lst in lists])


@router.post(
    "/curator/{owner_id}/lists",
    response_model=CuratedListDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a curated list",
    responses={
        201: {"description": "List created successfully"},
        404: {"description": "Curator profile not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_curated_list(
    request: Request,
    owner_id: UUID,
    body: CuratedListCreate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> CuratedListDetailResponse:
    """Create a list. Not idempotent: each call creates a new list."""
    profile, curated_list = await service.create_curated_list(
        requester, owner_id, body.name, body.description
    )
    return _list_detail(profile, curated_list.list_id)


@router.patch(
    "/curator/{owner_id}/lists/{list_id}",
    response_model=CuratedListDetailResponse,
    summary="Update a curated list",
    responses={
        200: {"description": "List updated successfully"},
        404: {"description": "List not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_curated_list(
    request: Request,
    owner_id: UUID,
    list_id: UUID,
    body: CuratedListUpdate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> CuratedListDetailResponse:
    """Update a list's name and/or description. Omitted fields are kept."""
    profile = await service.update_curated_list(
        requester,
        owner_id,
        list_id,
        name=body.name,
        description=body.description,
    )
    return _list_detail(profile, list_id)


@router.delete(
    "/curator/{owner_id}/lists/{list_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a curated list",
    responses={
        204: {"description": "List deleted successfully"},
        404: {"description": "List not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_curated_list(
    request: Request,
    owner_id: UUID,
    list_id: UUID,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> None:
    await service.delete_curated_list(requester, owner_id, list_id)
    return None


@router.post(
    "/curator/{owner_id}/lists/{list_id}/movies",
    response_model=CuratedListDetailResponse,
    summary="Add a movie to a curated list",
    responses={
        200: {"description": "Movie present in list"},
        404: {"description": "List not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_movie_to_list(
    request: Request,
    owner_id: UUID,
    list_id: UUID,
    body: ListMovieAdd,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> CuratedListDetailResponse:
    """Add a movie to a list. Idempotent if the movie is already in it."""
    movie = ListMovie(
        movie_id=body.movie_id,
        movie_title=body.movie_title,
        movie_poster=body.movie_poster,
    )
    profile = await service.add_movie_to_list(requester, owner_id, list_id, movie)
    return _list_detail(profile, list_id)


@router.delete(
    "/curator/{owner_id}/lists/{list_id}/movies/{movie_id}",
    response_model=CuratedListDetailResponse,
    summary="Remove a movie from a curated list",
    responses={
        200: {"description": "Movie absent from list"},
        404: {"description": "List not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_movie_from_list(
    request: Request,
    owner_id: UUID,
    list_id: UUID,
    movie_id: str,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> CuratedListDetailResponse:
    profile = await service.remove_movie_from_list(requester, owner_id, list_id, movie_id)
    return _list_detail(profile, list_id)


# --- Admin ---


@router.post(
    "/admin/{owner_id}/activity",
    response_model=ProfileDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append to the admin activity log",
    responses={
        201: {"description": "Entry appended"},
        403: {"description": "Admin role required"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def append_activity_log(
    request: Request,
    owner_id: UUID,
    body: ActivityLogCreate,
    requester: CurrentRequester,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileDetailResponse:
    profile = await service.append_activity_log(requester, owner_id, body.action, body.details)
    return ProfileDetailResponse(data=to_profile_response(profile))
