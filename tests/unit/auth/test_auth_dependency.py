"""Unit tests for authentication dependencies."""

from uuid import uuid4

import pytest
from fastapi.security import HTTPAuthorizationCredentials

from api.dependencies.auth import get_current_user, get_requester
from core.exceptions import AuthenticationError, ErrorCode
from domain.entities.profile import Role
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser


@pytest.fixture
def auth_provider() -> JWTAuthProvider:
    return JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)


@pytest.fixture
def curator() -> TokenUser:
    return TokenUser(id=uuid4(), email="cal@example.com", display_name="Cal", role="curator")


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


# --- get_current_user ---


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_returns_user_with_valid_token(
        self, auth_provider: JWTAuthProvider, curator: TokenUser
    ):
        token = auth_provider.create_token(curator)

        result = await get_current_user(_credentials(token), auth_provider)

        assert result.id == curator.id
        assert result.role == "curator"

    @pytest.mark.asyncio
    async def test_raises_when_no_credentials(self, auth_provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(None, auth_provider)

        assert exc_info.value.error_code == ErrorCode.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_raises_when_invalid_token(self, auth_provider: JWTAuthProvider):
        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(_credentials("invalid.jwt.token"), auth_provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_raises_when_expired_token(self, curator: TokenUser):
        expired = JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=-1)
        token = expired.create_token(curator)
        provider = JWTAuthProvider(secret_key="test-secret", algorithm="HS256", expire_minutes=30)

        with pytest.raises(AuthenticationError) as exc_info:
            await get_current_user(_credentials(token), provider)

        assert exc_info.value.error_code == ErrorCode.INVALID_TOKEN


# --- get_requester ---


class TestGetRequester:
    @pytest.mark.asyncio
    async def test_maps_role_claim(self, curator: TokenUser):
        requester = await get_requester(curator)

        assert requester.id == curator.id
        assert requester.role is Role.CURATOR

    @pytest.mark.asyncio
    async def test_missing_role_claim_is_not_admin(self):
        user = TokenUser(id=uuid4(), email="x@example.com")

        requester = await get_requester(user)

        assert requester.role is None
        assert not requester.is_admin
