"""JWT authentication provider implementation.

The identity service issues ES256 tokens verified against its JWKS
endpoint; HS256 tokens signed with the shared secret are accepted for
local development and tests. The platform role travels in
``app_metadata.role`` (falling back to ``user_metadata.role``).

Expected payload structure:
    {
        "sub": "user-uuid",
        "email": "user@example.com",
        "role": "authenticated",
        "aud": "authenticated",
        "app_metadata": { "role": "curator" },
        "user_metadata": { "display_name": "John" },
        "exp": 1234567890
    }
"""

from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

import httpx
import structlog
from jose import JWTError, jwt
from jose.backends import ECKey

from core.config import settings
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

# Module-level JWKS cache (fetched once, reused across requests)
_jwks_cache: dict[str, Any] | None = None


async def _get_jwks_keys() -> dict[str, Any]:
    """Fetch and cache the identity service's JWKS as a kid -> key mapping."""
    global _jwks_cache
    if _jwks_cache is not None:
        return _jwks_cache

    jwks_url = settings.supabase_jwks_url
    if not jwks_url:
        return {}

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=10.0)
            response.raise_for_status()
            jwks_data = response.json()
    except Exception as e:
        logger.error("jwks_fetch_failed", url=jwks_url, error=str(e))
        return {}

    _jwks_cache = {
        key_data["kid"]: key_data for key_data in jwks_data.get("keys", []) if key_data.get("kid")
    }
    logger.info("jwks_fetched", keys=len(_jwks_cache))
    return _jwks_cache


def _token_user_from_claims(payload: dict[str, Any]) -> Optional[TokenUser]:
    """Map verified claims to a TokenUser, or None if required claims are missing."""
    user_id = payload.get("sub")
    email = payload.get("email")
    if not user_id or not email:
        return None

    user_metadata = payload.get("user_metadata") or {}
    display_name = (
        user_metadata.get("display_name")
        or user_metadata.get("name")
        or user_metadata.get("full_name")
        or payload.get("name")
    )

    # The top-level "role" claim is the database role, not the platform role
    app_metadata = payload.get("app_metadata") or {}
    role = app_metadata.get("role") or user_metadata.get("role")

    return TokenUser(id=UUID(user_id), email=email, display_name=display_name, role=role)


class JWTAuthProvider:
    """JWT-based authentication provider.

    Handles validation of both identity-service (ES256) and
    locally-created (HS256) JWTs.
    """

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
        expire_minutes: int = settings.jwt_expire_minutes,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a JWT token and extract user info.

        Used by both the REST bearer dependency and the presence
        WebSocket handshake.

        Args:
            token: The JWT to validate

        Returns:
            TokenUser if valid, None if invalid or expired
        """
        try:
            header = jwt.get_unverified_header(token)
            if header.get("alg", self._algorithm) == "ES256":
                payload = await self._validate_es256(token, header)
            else:
                payload = jwt.decode(
                    token,
                    self._secret_key,
                    algorithms=[self._algorithm],
                    options={"verify_aud": False},
                )
            return _token_user_from_claims(payload) if payload else None
        except (JWTError, ValueError):
            # ValueError: "sub" is not a UUID
            return None

    async def _validate_es256(self, token: str, header: dict) -> Optional[dict]:
        """Validate an ES256-signed JWT using JWKS public keys."""
        kid = header.get("kid")
        if not kid:
            return None

        key_data = (await _get_jwks_keys()).get(kid)
        if not key_data:
            # Unknown kid: the signing key may have rotated, refetch once
            global _jwks_cache
            _jwks_cache = None
            key_data = (await _get_jwks_keys()).get(kid)
            if not key_data:
                logger.warning("jwks_key_not_found", kid=kid)
                return None

        ec_key = ECKey(key_data, algorithm="ES256")
        return jwt.decode(
            token,
            ec_key,
            algorithms=["ES256"],
            options={"verify_aud": False},
        )

    def create_token(self, user: TokenUser) -> str:
        """Create an HS256 token for a user (local development and tests)."""
        expire = datetime.utcnow() + timedelta(minutes=self._expire_minutes)
        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "aud": "authenticated",
            "role": "authenticated",
            "exp": expire,
            "app_metadata": {"role": user.role},
            "user_metadata": {"display_name": user.display_name},
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
