"""First-login bootstrap of an organization and its user."""

import re
import secrets
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import OnboardingTypeNotFoundError
from domain.entities.events import UserCreated
from domain.entities.identity import DEFAULT_USER_SCOPES, Organization, Role, User
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.event_bus import EventBus
from infrastructure.auth.token_crypto import display_name_from_email

logger = structlog.get_logger()

MAGIC_LINK_ONBOARDING = "Magic Link"

_SLUG_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class OnboardingResult:
    user: User
    organization: Organization


class OnboardingService:
    """Creates one organization and one USER-role member for a new email.

    Onboarding type ids are cached per instance and never invalidated; the
    rows are static reference data.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._events = event_bus
        self._onboarding_type_cache: dict[str, UUID] = {}

    async def get_onboarding_type_id(self, uow: IUnitOfWork, name: str) -> UUID:
        """Resolve an onboarding type name to its id.

        Raises:
            OnboardingTypeNotFoundError: If no such type is seeded.
        """
        cached = self._onboarding_type_cache.get(name)
        if cached is not None:
            return cached

        onboarding_type = await uow.onboarding_types.get_by_name(name)
        if not onboarding_type:
            raise OnboardingTypeNotFoundError(name)

        self._onboarding_type_cache[name] = onboarding_type.id
        return onboarding_type.id

    async def create_org_with_onboarding(
        self,
        email: str,
        onboarding_type_name: str = MAGIC_LINK_ONBOARDING,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> OnboardingResult:
        """Create a workspace organization and its first user."""
        email = email.lower().strip()

        async with self._uow_factory() as uow:
            onboarding_type_id = await self.get_onboarding_type_id(uow, onboarding_type_name)

            organization = await uow.organizations.create(
                Organization(
                    name=f"{email}'s Workspace",
                    slug=generate_org_slug(email),
                    onboarding_type_id=onboarding_type_id,
                )
            )

            user = await uow.users.create(
                User(
                    email=email,
                    org_id=organization.id,
                    role_id=Role.USER,
                    first_name=first_name,
                    last_name=last_name,
                    display_name=build_display_name(email, first_name, last_name),
                    preferences={"scope": list(DEFAULT_USER_SCOPES)},
                )
            )
            await uow.commit()

        logger.info(
            "organization_onboarded",
            org_id=str(organization.id),
            slug=organization.slug,
            onboarding_type=onboarding_type_name,
            user_id=str(user.id),
        )

        if self._events:
            await self._events.emit(UserCreated(user_id=user.id, email=user.email, org_id=organization.id))

        return OnboardingResult(user=user, organization=organization)


def build_display_name(email: str, first_name: str | None, last_name: str | None) -> str:
    """``"Jane D."``, else ``"Jane"``, else a name derived from the email."""
    if first_name and last_name:
        return f"{first_name} {last_name[0]}."
    if first_name:
        return first_name
    return display_name_from_email(email)


def generate_org_slug(email: str) -> str:
    """``{local}-{domain label}`` normalized, plus a random 6-char suffix."""
    local, _, domain = email.partition("@")
    domain_label = domain.split(".")[0] or "org"
    base = _NON_SLUG_CHARS.sub("-", f"{local}-{domain_label}".lower()).strip("-")
    suffix = "".join(secrets.choice(_SLUG_SUFFIX_ALPHABET) for _ in range(6))
    return f"{base}-{suffix}"
