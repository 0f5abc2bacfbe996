"""SQLAlchemy implementation of Waitlist repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DuplicateWaitlistEntryError
from domain.entities.waitlist import WaitlistEntry, WaitlistStatus
from infrastructure.database.models import WaitlistModel


class SQLAlchemyWaitlistRepository:
    """SQLAlchemy implementation of IWaitlistRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        """Insert an entry; the unique index on email rejects duplicates."""
        model = self._to_model(entry)
        model.email = model.email.lower()
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            if "email" in str(e.orig).lower():
                raise DuplicateWaitlistEntryError(model.email) from e
            raise
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get(self, id: UUID) -> WaitlistEntry | None:
        """Get an entry by ID."""
        model = await self._session.get(WaitlistModel, id)
        return self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        """Get an entry by email (case-insensitive)."""
        stmt = select(WaitlistModel).where(func.lower(WaitlistModel.email) == email.lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_all(
        self,
        status: WaitlistStatus | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[WaitlistEntry]:
        """List entries, most recent first."""
        stmt = select(WaitlistModel).order_by(WaitlistModel.created_at.desc())
        if status:
            stmt = stmt.where(WaitlistModel.status == status.value)
        if date_from:
            stmt = stmt.where(WaitlistModel.created_at >= date_from)
        if date_to:
            stmt = stmt.where(WaitlistModel.created_at <= date_to)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def transition(
        self,
        id: UUID,
        status: WaitlistStatus,
        invite_id: UUID | None = None,
    ) -> WaitlistEntry | None:
        """Leave ``pending`` with a single conditional UPDATE.

        Returns None when the entry is missing or no longer pending; a
        concurrent transition that committed first matches zero rows.
        """
        stmt = (
            update(WaitlistModel)
            .where(
                WaitlistModel.id == id,
                WaitlistModel.status == WaitlistStatus.PENDING.value,
            )
            .values(status=status.value, invite_id=invite_id, updated_at=datetime.utcnow())
            .returning(WaitlistModel)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    def _to_entity(self, model: WaitlistModel) -> WaitlistEntry:
        """Convert ORM model to domain entity."""
        return WaitlistEntry(
            id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            organization_name=model.organization_name,
            job_title=model.job_title,
            interest_reason=model.interest_reason,
            use_case=model.use_case,
            feedback_importance=model.feedback_importance,
            subscribe_newsletter=model.subscribe_newsletter,
            status=WaitlistStatus(model.status),
            invite_id=model.invite_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: WaitlistEntry) -> WaitlistModel:
        """Convert domain entity to ORM model."""
        return WaitlistModel(
            id=entity.id,
            email=entity.email,
            first_name=entity.first_name,
            last_name=entity.last_name,
            organization_name=entity.organization_name,
            job_title=entity.job_title,
            interest_reason=entity.interest_reason,
            use_case=entity.use_case,
            feedback_importance=entity.feedback_importance,
            subscribe_newsletter=entity.subscribe_newsletter,
            status=entity.status.value,
            invite_id=entity.invite_id,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
