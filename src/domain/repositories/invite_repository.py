"""Invite repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invite import Invite


class IInviteRepository(Protocol):
    """Repository interface for Invite entities."""

    async def create(self, invite: Invite) -> Invite:
        """Persist a new invite."""
        ...

    async def get_by_id(self, id: UUID) -> Invite | None:
        """Get an invite by its primary key."""
        ...

    async def get_by_slug(self, slug: str) -> Invite | None:
        """Get an invite by its public URL slug."""
        ...

    async def list_all(
        self,
        email: str | None = None,
        sent_by_user_id: UUID | None = None,
    ) -> list[Invite]:
        """List invites, most recent first."""
        ...

    async def get_for_email(self, email: str) -> list[Invite]:
        """Get every invite for an email address, most recent first."""
        ...

    async def revoke(self, id: UUID) -> Invite | None:
        """Set ``revoked``. Idempotent. Returns None for an unknown id."""
        ...

    async def atomic_consume(
        self,
        slug: str,
        token_hash: str,
        used_ua_hash: str,
        used_ip_prefix: str,
        now: datetime,
    ) -> Invite | None:
        """Redeem one use of an invite as a single indivisible operation.

        Succeeds only if the invite exists, is not revoked, has not expired at
        ``now``, has uses left and its stored hash matches ``token_hash``.
        On success increments ``current_uses``, sets ``used_at`` if unset and
        records the consuming fingerprints. On any failure returns None and
        leaves the record untouched.
        """
        ...
