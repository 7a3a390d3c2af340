"""Role profile document store protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.profile import Role, RoleProfile


class IProfileRepository(Protocol):
    """Document store for role profiles, one document per (owner, variant).

    Writes are compare-and-swap on ``version`` so that a read-modify-write
    either lands on the exact document it read or does nothing.
    """

    async def get(self, owner_id: UUID, variant: Role) -> RoleProfile | None:
        """Get the profile document for an owner and variant."""
        ...

    async def create(self, profile: RoleProfile) -> RoleProfile:
        """Insert a new document.

        Raises:
            ProfileAlreadyExistsError: If (owner_id, variant) is taken.
        """
        ...

    async def replace(self, profile: RoleProfile, expected_version: int) -> bool:
        """Overwrite the document if its stored version still matches.

        On success the stored version becomes ``expected_version + 1`` and
        ``profile.version`` is updated to match.

        Returns:
            False if another writer committed first (nothing was written).
        """
        ...
