"""Presence snapshot route."""

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_presence_registry
from api.v1.schemas.presence import OnlineUsersResponse
from core.rate_limit import READ_LIMIT, limiter
from domain.services.presence_service import PresenceRegistry

router = APIRouter(prefix="/presence", tags=["presence"])


@router.get(
    "",
    response_model=OnlineUsersResponse,
    summary="List online users",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_online(
    request: Request,
    user: CurrentUser,
    registry: PresenceRegistry = Depends(get_presence_registry),
) -> OnlineUsersResponse:
    """Ids of users with at least one open presence connection."""
    online = await registry.list_online()
    return OnlineUsersResponse(data=sorted(online), count=len(online))
