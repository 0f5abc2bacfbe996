"""SQLAlchemy implementations of User, Organization and OnboardingType repositories."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DuplicateUserError
from domain.entities.identity import OnboardingType, Organization, Role, User
from infrastructure.database.models import OnboardingTypeModel, OrganizationModel, UserModel


class SQLAlchemyUserRepository:
    """SQLAlchemy implementation of IUserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, user: User) -> User:
        """Create a new user; the unique index on email rejects duplicates."""
        model = UserModel(
            id=user.id,
            email=user.email.lower(),
            org_id=user.org_id,
            role_id=int(user.role_id),
            first_name=user.first_name,
            last_name=user.last_name,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            preferences=user.preferences,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            if "email" in str(e.orig).lower():
                raise DuplicateUserError(model.email) from e
            raise
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get(self, id: UUID) -> User | None:
        """Get a user by ID."""
        model = await self._session.get(UserModel, id)
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email across all organizations."""
        stmt = select(UserModel).where(func.lower(UserModel.email) == email.lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    def _to_entity(self, model: UserModel) -> User:
        """Convert ORM model to domain entity."""
        return User(
            id=model.id,
            email=model.email,
            org_id=model.org_id,
            role_id=Role(model.role_id),
            first_name=model.first_name,
            last_name=model.last_name,
            display_name=model.display_name,
            avatar_url=model.avatar_url,
            preferences=model.preferences or {},
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class SQLAlchemyOrganizationRepository:
    """SQLAlchemy implementation of IOrganizationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        model = OrganizationModel(
            id=organization.id,
            name=organization.name,
            slug=organization.slug,
            onboarding_type_id=organization.onboarding_type_id,
            settings=organization.settings,
            created_at=organization.created_at,
            updated_at=organization.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        model = await self._session.get(OrganizationModel, id)
        return self._to_entity(model) if model else None

    def _to_entity(self, model: OrganizationModel) -> Organization:
        """Convert ORM model to domain entity."""
        return Organization(
            id=model.id,
            name=model.name,
            slug=model.slug,
            onboarding_type_id=model.onboarding_type_id,
            settings=model.settings or {},
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class SQLAlchemyOnboardingTypeRepository:
    """SQLAlchemy implementation of IOnboardingTypeRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_name(self, name: str) -> OnboardingType | None:
        """Get an onboarding type by name."""
        stmt = select(OnboardingTypeModel).where(OnboardingTypeModel.name == name)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, onboarding_type: OnboardingType) -> OnboardingType:
        """Create an onboarding type."""
        model = OnboardingTypeModel(
            id=onboarding_type.id,
            name=onboarding_type.name,
            created_at=onboarding_type.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    def _to_entity(self, model: OnboardingTypeModel) -> OnboardingType:
        """Convert ORM model to domain entity."""
        return OnboardingType(id=model.id, name=model.name, created_at=model.created_at)
