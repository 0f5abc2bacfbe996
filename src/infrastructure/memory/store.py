"""In-memory storage backend.

Implements the same repository contract as the SQLAlchemy backend. Writes are
applied immediately; ``commit`` and ``rollback`` are no-ops. Entities are
copied on the way in and out so callers never share mutable state with the
store.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from core.exceptions import DuplicateUserError, DuplicateWaitlistEntryError
from domain.entities.identity import OnboardingType, Organization, User
from domain.entities.invite import Invite
from domain.entities.waitlist import WaitlistEntry, WaitlistStatus
from infrastructure.auth.token_crypto import timing_safe_equal

T = TypeVar("T")


def _copy(entity: T) -> T:
    return copy.deepcopy(entity)


@dataclass
class MemoryStore:
    """Tables shared by every unit of work created from one store."""

    invites: dict[UUID, Invite] = field(default_factory=dict)
    waitlist: dict[UUID, WaitlistEntry] = field(default_factory=dict)
    users: dict[UUID, User] = field(default_factory=dict)
    organizations: dict[UUID, Organization] = field(default_factory=dict)
    onboarding_types: dict[UUID, OnboardingType] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class InMemoryInviteRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, invite: Invite) -> Invite:
        self._store.invites[invite.id] = _copy(invite)
        return _copy(invite)

    async def get_by_id(self, id: UUID) -> Invite | None:
        invite = self._store.invites.get(id)
        return _copy(invite) if invite else None

    async def get_by_slug(self, slug: str) -> Invite | None:
        invite = self._find_by_slug(slug)
        return _copy(invite) if invite else None

    async def list_all(
        self,
        email: str | None = None,
        sent_by_user_id: UUID | None = None,
    ) -> list[Invite]:
        invites = [
            invite
            for invite in self._store.invites.values()
            if (email is None or invite.email == email.lower())
            and (sent_by_user_id is None or invite.sent_by_user_id == sent_by_user_id)
        ]
        invites.sort(key=lambda invite: invite.created_at, reverse=True)
        return [_copy(invite) for invite in invites]

    async def get_for_email(self, email: str) -> list[Invite]:
        return await self.list_all(email=email)

    async def revoke(self, id: UUID) -> Invite | None:
        invite = self._store.invites.get(id)
        if not invite:
            return None
        invite.revoked = True
        return _copy(invite)

    async def atomic_consume(
        self,
        slug: str,
        token_hash: str,
        used_ua_hash: str,
        used_ip_prefix: str,
        now: datetime,
    ) -> Invite | None:
        async with self._store.lock:
            invite = self._find_by_slug(slug)
            if invite is None or not invite.is_redeemable(now):
                return None
            if not timing_safe_equal(invite.token_hash, token_hash):
                return None

            invite.current_uses += 1
            if invite.used_at is None:
                invite.used_at = now
            invite.used_ua_hash = used_ua_hash
            invite.used_ip_prefix = used_ip_prefix
            return _copy(invite)

    def _find_by_slug(self, slug: str) -> Invite | None:
        return next((i for i in self._store.invites.values() if i.url_slug == slug), None)


class InMemoryWaitlistRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        async with self._store.lock:
            email = entry.email.lower()
            if any(e.email == email for e in self._store.waitlist.values()):
                raise DuplicateWaitlistEntryError(email)
            stored = _copy(entry)
            stored.email = email
            self._store.waitlist[stored.id] = stored
            return _copy(stored)

    async def get(self, id: UUID) -> WaitlistEntry | None:
        entry = self._store.waitlist.get(id)
        return _copy(entry) if entry else None

    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        email = email.lower()
        entry = next((e for e in self._store.waitlist.values() if e.email == email), None)
        return _copy(entry) if entry else None

    async def list_all(
        self,
        status: WaitlistStatus | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[WaitlistEntry]:
        entries = [
            entry
            for entry in self._store.waitlist.values()
            if (status is None or entry.status == status)
            and (date_from is None or entry.created_at >= date_from)
            and (date_to is None or entry.created_at <= date_to)
        ]
        entries.sort(key=lambda entry: entry.created_at, reverse=True)
        return [_copy(entry) for entry in entries]

    async def transition(
        self,
        id: UUID,
        status: WaitlistStatus,
        invite_id: UUID | None = None,
    ) -> WaitlistEntry | None:
        async with self._store.lock:
            stored = self._store.waitlist.get(id)
            if stored is None or not stored.is_pending:
                return None
            stored.status = status
            stored.invite_id = invite_id
            stored.updated_at = datetime.utcnow()
            return _copy(stored)


class InMemoryUserRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, user: User) -> User:
        async with self._store.lock:
            email = user.email.lower()
            if any(u.email == email for u in self._store.users.values()):
                raise DuplicateUserError(email)
            stored = _copy(user)
            stored.email = email
            self._store.users[stored.id] = stored
            return _copy(stored)

    async def get(self, id: UUID) -> User | None:
        user = self._store.users.get(id)
        return _copy(user) if user else None

    async def get_by_email(self, email: str) -> User | None:
        email = email.lower()
        user = next((u for u in self._store.users.values() if u.email == email), None)
        return _copy(user) if user else None


class InMemoryOrganizationRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def create(self, organization: Organization) -> Organization:
        self._store.organizations[organization.id] = _copy(organization)
        return _copy(organization)

    async def get(self, id: UUID) -> Organization | None:
        organization = self._store.organizations.get(id)
        return _copy(organization) if organization else None


class InMemoryOnboardingTypeRepository:
    def __init__(self, store: MemoryStore) -> None:
        self._store = store

    async def get_by_name(self, name: str) -> OnboardingType | None:
        found = next((t for t in self._store.onboarding_types.values() if t.name == name), None)
        return _copy(found) if found else None

    async def create(self, onboarding_type: OnboardingType) -> OnboardingType:
        self._store.onboarding_types[onboarding_type.id] = _copy(onboarding_type)
        return _copy(onboarding_type)


class InMemoryUnitOfWork:
    """Unit of Work over a ``MemoryStore``."""

    def __init__(self, store: MemoryStore) -> None:
        self.invites = InMemoryInviteRepository(store)
        self.waitlist = InMemoryWaitlistRepository(store)
        self.users = InMemoryUserRepository(store)
        self.organizations = InMemoryOrganizationRepository(store)
        self.onboarding_types = InMemoryOnboardingTypeRepository(store)

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass

    async def __aenter__(self) -> "InMemoryUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass
