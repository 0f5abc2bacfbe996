"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.invite_repository import IInviteRepository
from domain.repositories.organization_repository import (
    IOnboardingTypeRepository,
    IOrganizationRepository,
)
from domain.repositories.user_repository import IUserRepository
from domain.repositories.waitlist_repository import IWaitlistRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    invites: IInviteRepository
    waitlist: IWaitlistRepository
    users: IUserRepository
    organizations: IOrganizationRepository
    onboarding_types: IOnboardingTypeRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
