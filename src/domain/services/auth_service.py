"""Invite acceptance: redeem, then find or onboard the user."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

import structlog

from core.exceptions import DuplicateUserError, InviteRedemptionError
from domain.entities.events import InviteAccepted
from domain.entities.identity import Organization, User
from domain.entities.invite import Invite, RequestContext
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.event_bus import EventBus
from domain.services.invite_service import InviteService
from domain.services.onboarding_service import MAGIC_LINK_ONBOARDING, OnboardingService

logger = structlog.get_logger()


@dataclass(frozen=True)
class AcceptedLogin:
    invite: Invite
    user: User
    organization: Organization
    is_new_user: bool


class AuthService:
    """Orchestrates the accept flow. Session issuance stays with the caller."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        invite_service: InviteService,
        onboarding_service: OnboardingService,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._invites = invite_service
        self._onboarding = onboarding_service
        self._events = event_bus

    async def accept_invite(self, slug: str, token: str, context: RequestContext) -> AcceptedLogin:
        """Redeem an invite and resolve the user it logs in.

        Raises:
            InviteRedemptionError: For every redemption failure, with the same
                client-facing message. The diagnosed reason is logged only.
            RuntimeError: If an existing user has no organization.
        """
        invite = await self._invites.consume_invite(slug, token, context)

        if invite is None:
            reason = await self._invites.diagnose_failure(slug)
            logger.warning("invite_redemption_failed", slug=slug, reason=reason.value)
            raise InviteRedemptionError(reason=reason.value)

        existing = await self._find_existing(invite.email)

        if existing:
            user, organization = existing
            is_new_user = False
            logger.info(
                "existing_user_login",
                user_id=str(user.id),
                org_id=str(organization.id),
                invite_uses=f"{invite.current_uses}/{invite.max_uses}",
            )
        else:
            try:
                result = await self._onboarding.create_org_with_onboarding(
                    invite.email,
                    MAGIC_LINK_ONBOARDING,
                    first_name=invite.first_name,
                    last_name=invite.last_name,
                )
                user, organization = result.user, result.organization
                is_new_user = True
            except DuplicateUserError:
                # A concurrent accept for the same email onboarded first.
                existing = await self._find_existing(invite.email)
                if existing is None:
                    raise
                user, organization = existing
                is_new_user = False
                logger.info(
                    "concurrent_onboarding_resolved",
                    user_id=str(user.id),
                    invite_id=str(invite.id),
                )

        if self._events:
            await self._events.emit(InviteAccepted(invite_id=invite.id, user_id=user.id))

        return AcceptedLogin(
            invite=invite,
            user=user,
            organization=organization,
            is_new_user=is_new_user,
        )

    async def _find_existing(self, email: str) -> tuple[User, Organization] | None:
        async with self._uow_factory() as uow:
            user = await uow.users.get_by_email(email)
            organization = await uow.organizations.get(user.org_id) if user else None

        if user is None:
            return None
        if organization is None:
            raise RuntimeError(f"Organization not found for user {user.id}")
        return user, organization
