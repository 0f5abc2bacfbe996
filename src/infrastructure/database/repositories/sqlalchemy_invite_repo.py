"""SQLAlchemy implementation of Invite repository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.invite import Invite
from infrastructure.auth.token_crypto import timing_safe_equal
from infrastructure.database.models import InviteModel


class SQLAlchemyInviteRepository:
    """SQLAlchemy implementation of IInviteRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, invite: Invite) -> Invite:
        """Create a new invite."""
        model = self._to_model(invite)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, id: UUID) -> Invite | None:
        """Get an invite by its primary key."""
        model = await self._session.get(InviteModel, id)
        return self._to_entity(model) if model else None

    async def get_by_slug(self, slug: str) -> Invite | None:
        """Get an invite by its URL slug."""
        stmt = select(InviteModel).where(InviteModel.url_slug == slug)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_all(
        self,
        email: str | None = None,
        sent_by_user_id: UUID | None = None,
    ) -> list[Invite]:
        """List invites, most recent first."""
        stmt = select(InviteModel).order_by(InviteModel.created_at.desc())
        if email:
            stmt = stmt.where(InviteModel.email == email.lower())
        if sent_by_user_id:
            stmt = stmt.where(InviteModel.sent_by_user_id == sent_by_user_id)
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_for_email(self, email: str) -> list[Invite]:
        """Get every invite for an email address, most recent first."""
        return await self.list_all(email=email)

    async def revoke(self, id: UUID) -> Invite | None:
        """Set the revoked flag. Idempotent."""
        model = await self._session.get(InviteModel, id)
        if not model:
            return None
        model.revoked = True
        await self._session.flush()
        return self._to_entity(model)

    async def atomic_consume(
        self,
        slug: str,
        token_hash: str,
        used_ua_hash: str,
        used_ip_prefix: str,
        now: datetime,
    ) -> Invite | None:
        """Redeem one use with a single conditional UPDATE.

        The hash is first compared in constant time against the row read by
        slug. The UPDATE then re-checks every condition, including the hash,
        so it is authoritative: PostgreSQL re-evaluates the predicate under
        the row lock and SQLite serializes writers.
        """
        stored = await self._session.scalar(
            select(InviteModel.token_hash).where(InviteModel.url_slug == slug)
        )
        if stored is None or not timing_safe_equal(stored, token_hash):
            return None

        stmt = (
            update(InviteModel)
            .where(
                InviteModel.url_slug == slug,
                InviteModel.token_hash == token_hash,
                InviteModel.revoked.is_(False),
                InviteModel.expires_at > now,
                InviteModel.current_uses < InviteModel.max_uses,
            )
            .values(
                current_uses=InviteModel.current_uses + 1,
                used_at=func.coalesce(InviteModel.used_at, now),
                used_ua_hash=used_ua_hash,
                used_ip_prefix=used_ip_prefix,
            )
            .returning(InviteModel)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    def _to_entity(self, model: InviteModel) -> Invite:
        """Convert ORM model to domain entity."""
        return Invite(
            id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            token_hash=model.token_hash,
            url_slug=model.url_slug,
            expires_at=model.expires_at,
            max_uses=model.max_uses,
            current_uses=model.current_uses,
            revoked=model.revoked,
            purpose=model.purpose,
            sent_by_user_id=model.sent_by_user_id,
            ua_hash=model.ua_hash,
            ip_prefix=model.ip_prefix,
            used_at=model.used_at,
            used_ua_hash=model.used_ua_hash,
            used_ip_prefix=model.used_ip_prefix,
            created_at=model.created_at,
        )

    def _to_model(self, entity: Invite) -> InviteModel:
        """Convert domain entity to ORM model."""
        return InviteModel(
            id=entity.id,
            email=entity.email,
            first_name=entity.first_name,
            last_name=entity.last_name,
            token_hash=entity.token_hash,
            url_slug=entity.url_slug,
            expires_at=entity.expires_at,
            max_uses=entity.max_uses,
            current_uses=entity.current_uses,
            revoked=entity.revoked,
            purpose=entity.purpose,
            sent_by_user_id=entity.sent_by_user_id,
            ua_hash=entity.ua_hash,
            ip_prefix=entity.ip_prefix,
            used_at=entity.used_at,
            used_ua_hash=entity.used_ua_hash,
            used_ip_prefix=entity.used_ip_prefix,
            created_at=entity.created_at,
        )
