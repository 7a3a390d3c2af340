"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"

    # Not found errors (404)
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    LIST_NOT_FOUND = "LIST_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Conflict errors (409)
    PROFILE_EXISTS = "PROFILE_EXISTS"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class ProfileNotFoundError(AppException):
    """No profile of the requested variant exists for the owner."""

    def __init__(self, owner_id: str, variant: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_NOT_FOUND,
            message=f"{variant.capitalize()} profile not found: {owner_id}",
            status_code=404,
            details={"owner_id": owner_id, "variant": variant},
        )


class CuratedListNotFoundError(AppException):
    """Curated list not found among the curator's lists."""

    def __init__(self, list_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.LIST_NOT_FOUND,
            message=f"Curated list not found: {list_id}",
            status_code=404,
            details={"list_id": list_id},
        )


class ProfileAlreadyExistsError(AppException):
    """A profile of this variant already exists for the owner."""

    def __init__(self, owner_id: str, variant: str) -> None:
        super().__init__(
            error_code=ErrorCode.PROFILE_EXISTS,
            message=f"{variant.capitalize()} profile already exists: {owner_id}",
            status_code=409,
            details={"owner_id": owner_id, "variant": variant},
        )


class ConcurrentModificationError(AppException):
    """The document kept changing underneath a read-modify-write."""

    def __init__(self, owner_id: str, variant: str, attempts: int) -> None:
        super().__init__(
            error_code=ErrorCode.CONCURRENT_MODIFICATION,
            message="Profile was modified concurrently, please retry",
            status_code=409,
            details={"owner_id": owner_id, "variant": variant, "attempts": attempts},
        )


class StoreUnavailableError(AppException):
    """The document store could not complete the operation."""

    def __init__(self, message: str = "Profile store unavailable") -> None:
        super().__init__(
            error_code=ErrorCode.STORE_UNAVAILABLE,
            message=message,
            status_code=503,
        )
