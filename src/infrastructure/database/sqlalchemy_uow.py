"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_identity_repo import (
    SQLAlchemyOnboardingTypeRepository,
    SQLAlchemyOrganizationRepository,
    SQLAlchemyUserRepository,
)
from infrastructure.database.repositories.sqlalchemy_invite_repo import SQLAlchemyInviteRepository
from infrastructure.database.repositories.sqlalchemy_waitlist_repo import SQLAlchemyWaitlistRepository
from infrastructure.database.retry import retry_with_jitter


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def invites(self) -> SQLAlchemyInviteRepository:
        """Get invite repository."""
        return SQLAlchemyInviteRepository(self._require_session())

    @property
    def waitlist(self) -> SQLAlchemyWaitlistRepository:
        """Get waitlist repository."""
        return SQLAlchemyWaitlistRepository(self._require_session())

    @property
    def users(self) -> SQLAlchemyUserRepository:
        """Get user repository."""
        return SQLAlchemyUserRepository(self._require_session())

    @property
    def organizations(self) -> SQLAlchemyOrganizationRepository:
        """Get organization repository."""
        return SQLAlchemyOrganizationRepository(self._require_session())

    @property
    def onboarding_types(self) -> SQLAlchemyOnboardingTypeRepository:
        """Get onboarding type repository."""
        return SQLAlchemyOnboardingTypeRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager, create session and check out a connection."""
        session = self._session_factory()
        try:
            await retry_with_jitter(session.connection)
        except Exception:
            await session.close()
            raise
        self._session = session
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None
