"""Authorization gate for role-profile operations."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from core.exceptions import AuthorizationError
from domain.entities.profile import Role


class OperationClass(StrEnum):
    """How an operation relates to the profile it targets."""

    SELF_READ = "self_read"
    SELF_WRITE = "self_write"
    ADMIN_ONLY = "admin_only"


@dataclass(frozen=True, slots=True)
class Requester:
    """Verified identity attached to a call by the authentication layer."""

    id: UUID | None
    role: Role | None = None

    @classmethod
    def from_claims(cls, user_id: UUID | None, role: str | None) -> "Requester":
        """Build a requester from token claims. Unknown roles become None."""
        try:
            parsed = Role(role) if role else None
        except ValueError:
            parsed = None
        return cls(id=user_id, role=parsed)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def authorize(
    requester: Requester | None,
    owner_id: UUID | None,
    operation: OperationClass,
) -> bool:
    """Decide whether ``requester`` may run ``operation`` against ``owner_id``.

    Self reads need requester == owner. Self writes also accept any admin.
    Admin-only operations need the admin role. Anything missing denies.
    """
    if requester is None or requester.id is None or owner_id is None:
        return False

    is_owner = requester.id == owner_id
    if operation is OperationClass.SELF_READ:
        return is_owner
    if operation is OperationClass.SELF_WRITE:
        return is_owner or requester.is_admin
    if operation is OperationClass.ADMIN_ONLY:
        return requester.is_admin
    return False


def require(
    requester: Requester | None,
    owner_id: UUID | None,
    operation: OperationClass,
) -> None:
    """Raise AuthorizationError unless :func:`authorize` allows the call."""
    if not authorize(requester, owner_id, operation):
        raise AuthorizationError(
            "You are not allowed to access this profile"
            if operation is not OperationClass.ADMIN_ONLY
            else "Admin role required"
        )
