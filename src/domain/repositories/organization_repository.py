"""Organization and onboarding type repository protocols."""

from typing import Protocol
from uuid import UUID

from domain.entities.identity import OnboardingType, Organization


class IOrganizationRepository(Protocol):
    """Repository interface for Organization entities."""

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        ...

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        ...


class IOnboardingTypeRepository(Protocol):
    """Repository interface for OnboardingType reference data."""

    async def get_by_name(self, name: str) -> OnboardingType | None:
        """Get an onboarding type by its unique name."""
        ...

    async def create(self, onboarding_type: OnboardingType) -> OnboardingType:
        """Create an onboarding type."""
        ...
