"""User repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.identity import User


class IUserRepository(Protocol):
    """Repository interface for User entities."""

    async def create(self, user: User) -> User:
        """Create a new user.

        Raises:
            DuplicateUserError: If a user with the same email already exists.
        """
        ...

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        ...

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email across all organizations."""
        ...
