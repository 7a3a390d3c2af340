"""Presence WebSocket endpoint."""

import asyncio

import structlog
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from api.dependencies.auth import get_auth_provider
from api.v1.dependencies import get_presence_registry
from domain.services.presence_service import PresenceRegistry
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.realtime.broadcast import online_users_payload

logger = structlog.get_logger()

router = APIRouter(tags=["presence"])

# Application-defined close code: handshake rejected for auth reasons
WS_CLOSE_UNAUTHORIZED = 4401


@router.websocket("/ws/presence")
async def presence_socket(
    websocket: WebSocket,
    token: str | None = Query(None),
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
    registry: PresenceRegistry = Depends(get_presence_registry),
) -> None:
    """Register the caller as online for the lifetime of the socket.

    Every membership change pushes ``{"type": "online_users", "users": [...]}``
    to all open sockets. Inbound messages are ignored.
    """
    user = await auth_provider.validate_token(token) if token else None
    if user is None:
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED, reason="Invalid or missing token")
        return

    await websocket.accept()
    user_id = str(user.id)
    log = logger.bind(user_id=user_id)

    try:
        came_online = await registry.connect(user_id, websocket)
        if not came_online:
            # No broadcast for an extra session, so bring this one up to date
            await websocket.send_json(online_users_payload(await registry.list_online()))
        log.info("presence_socket_opened", new_user=came_online)

        # Inbound frames of any kind are drained and ignored until the client leaves
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                log.info("presence_socket_closed", code=message.get("code"))
                break
    except WebSocketDisconnect as e:
        log.info("presence_socket_closed", code=e.code)
    finally:
        # Finish the disconnect and its broadcast even if this handler is cancelled
        await asyncio.shield(registry.disconnect(user_id, websocket))
