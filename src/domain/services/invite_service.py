"""Invite service layer: creation, redemption and revocation of magic links."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import InviteNotFoundError
from domain.entities.events import InviteCreated, InviteRevoked
from domain.entities.invite import (
    Invite,
    InviteFailureReason,
    InvitePurpose,
    InviteResult,
    InviteStatus,
    RequestContext,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.event_bus import EventBus
from infrastructure.auth import token_crypto

logger = structlog.get_logger()


class InviteService:
    """Service layer for magic-link invite business logic.

    Lifecycle: ``ACTIVE -> {USED, EXPIRED, REVOKED}``. Only revocation is an
    explicit transition; the other states are derived from stored fields.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        event_bus: Optional[EventBus] = None,
        pepper: str | None = None,
        app_url: str | None = None,
        default_expiry_minutes: int | None = None,
        default_max_uses: int | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._events = event_bus
        self._pepper = pepper if pepper is not None else settings.token_pepper
        self._app_url = (app_url if app_url is not None else settings.app_url).rstrip("/")
        self._default_expiry_minutes = default_expiry_minutes or settings.auth_link_expiry_minutes
        self._default_max_uses = default_max_uses or settings.default_invite_max_uses
        self._clock = clock

    async def create_invite(
        self,
        email: str,
        first_name: str | None = None,
        last_name: str | None = None,
        expires_in_minutes: int | None = None,
        max_uses: int | None = None,
        purpose: InvitePurpose | str = InvitePurpose.INVITE,
        sent_by_user_id: UUID | None = None,
        context: RequestContext | None = None,
    ) -> InviteResult:
        """Create an invite and return its one-time secret.

        Args:
            email: Recipient address (stored lower-cased).
            first_name: Optional recipient first name.
            last_name: Optional recipient last name.
            expires_in_minutes: Lifetime; defaults to the configured link expiry.
            max_uses: Redemption budget; defaults to the configured maximum.
            purpose: Why the invite was issued.
            sent_by_user_id: Issuing admin, if any.
            context: Issuing request, used for fingerprints.

        Returns:
            InviteResult. The raw token and magic link are only available here.
        """
        expires_in_minutes = expires_in_minutes or self._default_expiry_minutes
        max_uses = max_uses or self._default_max_uses

        token = token_crypto.generate_token()
        slug = token_crypto.generate_url_slug()

        invite = Invite(
            email=email.lower().strip(),
            first_name=first_name,
            last_name=last_name,
            token_hash=token_crypto.hash_token(token, self._pepper),
            url_slug=slug,
            expires_at=self._clock() + timedelta(minutes=expires_in_minutes),
            max_uses=max_uses,
            purpose=InvitePurpose(purpose).value,
            sent_by_user_id=sent_by_user_id,
            ua_hash=token_crypto.hash_user_agent(context.user_agent) if context else None,
            ip_prefix=token_crypto.ip_prefix(context.ip) if context else None,
        )

        async with self._uow_factory() as uow:
            created = await uow.invites.create(invite)
            await uow.commit()

        magic_link = self.build_magic_link(slug, token)

        logger.info(
            "invite_created",
            invite_id=str(created.id),
            purpose=created.purpose,
            expires_in_minutes=expires_in_minutes,
            max_uses=max_uses,
        )

        if self._events:
            await self._events.emit(
                InviteCreated(
                    invite_id=created.id,
                    email=created.email,
                    magic_link=magic_link,
                    expires_in_minutes=expires_in_minutes,
                    first_name=created.first_name,
                )
            )

        return InviteResult(
            invite_id=created.id,
            slug=slug,
            token=token,
            magic_link=magic_link,
            expires_at=created.expires_at,
            expires_in_minutes=expires_in_minutes,
            max_uses=max_uses,
        )

    def build_magic_link(self, slug: str, token: str) -> str:
        """The token travels in the fragment so it never reaches server logs."""
        return f"{self._app_url}/accept/{slug}#t={token}"

    async def validate_invite(self, slug: str) -> Invite | None:
        """Read-only pre-check. Returns the invite if it could be redeemed now."""
        async with self._uow_factory() as uow:
            invite = await uow.invites.get_by_slug(slug)

        reason = self._failure_reason(invite)
        if reason is not None:
            logger.info("invite_validation_failed", slug=slug, reason=reason.value)
            return None
        return invite

    async def consume_invite(
        self,
        slug: str,
        token: str,
        context: RequestContext,
    ) -> Invite | None:
        """Redeem one use of an invite.

        All checks and the mutation happen inside the repository's atomic
        consume, so concurrent redemptions can never exceed ``max_uses``.

        Returns:
            The updated invite, or None if redemption failed for any reason.
        """
        token_hash = token_crypto.hash_token(token, self._pepper)

        async with self._uow_factory() as uow:
            invite = await uow.invites.atomic_consume(
                slug=slug,
                token_hash=token_hash,
                used_ua_hash=token_crypto.hash_user_agent(context.user_agent),
                used_ip_prefix=token_crypto.ip_prefix(context.ip),
                now=self._clock(),
            )
            if invite is None:
                return None
            await uow.commit()

        logger.info(
            "invite_consumed",
            invite_id=str(invite.id),
            current_uses=invite.current_uses,
            max_uses=invite.max_uses,
        )
        return invite

    async def diagnose_failure(self, slug: str) -> InviteFailureReason:
        """Explain a failed redemption. Only for logs; never returned to clients."""
        async with self._uow_factory() as uow:
            invite = await uow.invites.get_by_slug(slug)
        return self._failure_reason(invite) or InviteFailureReason.INVALID_TOKEN

    async def revoke_invite(self, invite_id: UUID) -> Invite:
        """Revoke an invite. Revoking twice is a no-op.

        Raises:
            InviteNotFoundError: If the invite does not exist.
        """
        async with self._uow_factory() as uow:
            invite = await uow.invites.revoke(invite_id)
            if invite is None:
                raise InviteNotFoundError(str(invite_id))
            await uow.commit()

        logger.info("invite_revoked", invite_id=str(invite_id))

        if self._events:
            await self._events.emit(InviteRevoked(invite_id=invite_id))

        return invite

    async def list_invites(
        self,
        status: InviteStatus | str | None = None,
        email: str | None = None,
        sent_by_user_id: UUID | None = None,
    ) -> list[Invite]:
        """List invites, most recent first, optionally filtered by derived status."""
        async with self._uow_factory() as uow:
            invites = await uow.invites.list_all(
                email=email.lower().strip() if email else None,
                sent_by_user_id=sent_by_user_id,
            )

        if status is None:
            return list(invites)

        wanted = InviteStatus(status)
        now = self._clock()
        return [invite for invite in invites if invite.status(now) == wanted]

    def get_invite_status(self, invite: Invite, now: datetime | None = None) -> InviteStatus:
        return invite.status(now or self._clock())

    async def resend_invite(
        self,
        email: str,
        sent_by_user_id: UUID | None = None,
        context: RequestContext | None = None,
    ) -> tuple[InviteResult, int]:
        """Revoke every live invite for ``email`` and issue a fresh one.

        Names are carried over from the most recent invite.

        Returns:
            Tuple of (new InviteResult, number of invites actually revoked).
        """
        email = email.lower().strip()
        revoked_ids: list[UUID] = []

        async with self._uow_factory() as uow:
            existing = await uow.invites.get_for_email(email)
            latest = existing[0] if existing else None

            for invite in existing:
                if invite.revoked:
                    continue
                await uow.invites.revoke(invite.id)
                revoked_ids.append(invite.id)

            await uow.commit()

        if self._events:
            for invite_id in revoked_ids:
                await self._events.emit(InviteRevoked(invite_id=invite_id))

        result = await self.create_invite(
            email=email,
            first_name=latest.first_name if latest else None,
            last_name=latest.last_name if latest else None,
            purpose=InvitePurpose.RESEND,
            sent_by_user_id=sent_by_user_id,
            context=context,
        )

        logger.info(
            "invite_resent",
            invite_id=str(result.invite_id),
            revoked_count=len(revoked_ids),
        )
        return result, len(revoked_ids)

    # --- Internal helpers ---

    def _failure_reason(self, invite: Invite | None) -> InviteFailureReason | None:
        """Reason an invite cannot be redeemed, or None if it can."""
        if invite is None:
            return InviteFailureReason.NOT_FOUND
        if invite.revoked:
            return InviteFailureReason.REVOKED
        if invite.is_expired(self._clock()):
            return InviteFailureReason.EXPIRED
        if not invite.has_uses_left:
            return InviteFailureReason.ALREADY_USED
        return None
