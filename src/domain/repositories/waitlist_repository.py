"""Waitlist repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.waitlist import WaitlistEntry, WaitlistStatus


class IWaitlistRepository(Protocol):
    """Repository interface for WaitlistEntry entities."""

    async def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        """Insert a new entry.

        Raises:
            DuplicateWaitlistEntryError: If the normalized email already exists.
        """
        ...

    async def get(self, id: UUID) -> WaitlistEntry | None:
        """Get an entry by ID."""
        ...

    async def get_by_email(self, email: str) -> WaitlistEntry | None:
        """Get an entry by email (case-insensitive)."""
        ...

    async def list_all(
        self,
        status: WaitlistStatus | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[WaitlistEntry]:
        """List entries, most recent first."""
        ...

    async def transition(
        self,
        id: UUID,
        status: WaitlistStatus,
        invite_id: UUID | None = None,
    ) -> WaitlistEntry | None:
        """Atomically move a pending entry to ``status``.

        The pending check and the write are one indivisible step. Returns
        None if the entry does not exist or is no longer pending.
        """
        ...
