"""Waitlist service layer with business logic."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog

from core.exceptions import (
    DuplicateWaitlistEntryError,
    InvalidWaitlistTransitionError,
    WaitlistEntryNotFoundError,
)
from domain.entities.events import WaitlistApproved, WaitlistJoined, WaitlistRejected
from domain.entities.waitlist import WaitlistEntry, WaitlistStatus
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.event_bus import EventBus

logger = structlog.get_logger()


@dataclass(frozen=True)
class NewWaitlistEntry:
    """Validated signup data."""

    email: str
    first_name: str | None = None
    last_name: str | None = None
    organization_name: str | None = None
    job_title: str | None = None
    interest_reason: str | None = None
    use_case: str | None = None
    feedback_importance: int | None = None
    subscribe_newsletter: bool = False


class WaitlistService:
    """Service layer for waitlist business logic."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._events = event_bus

    async def submit_entry(self, data: NewWaitlistEntry) -> WaitlistEntry:
        """Add a signup to the waitlist.

        Raises:
            DuplicateWaitlistEntryError: If the email is already registered.
        """
        email = data.email.lower().strip()

        async with self._uow_factory() as uow:
            existing = await uow.waitlist.get_by_email(email)
            if existing:
                logger.info("waitlist_duplicate_submission", waitlist_id=str(existing.id))
                raise DuplicateWaitlistEntryError(email)

            entry = WaitlistEntry(
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                organization_name=data.organization_name,
                job_title=data.job_title,
                interest_reason=data.interest_reason,
                use_case=data.use_case,
                feedback_importance=data.feedback_importance,
                subscribe_newsletter=data.subscribe_newsletter,
            )
            # A concurrent duplicate still trips the unique index inside create()
            created = await uow.waitlist.create(entry)
            await uow.commit()

        logger.info("waitlist_entry_created", waitlist_id=str(created.id))

        if self._events:
            await self._events.emit(
                WaitlistJoined(
                    waitlist_id=created.id,
                    email=created.email,
                    first_name=created.first_name,
                )
            )

        return created

    async def list_entries(
        self,
        status: WaitlistStatus | str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> list[WaitlistEntry]:
        """List entries, most recent first."""
        async with self._uow_factory() as uow:
            return await uow.waitlist.list_all(  # type: ignore[no-any-return]
                status=WaitlistStatus(status) if status else None,
                date_from=date_from,
                date_to=date_to,
            )

    async def get_entry(self, waitlist_id: UUID) -> WaitlistEntry:
        """Get a single entry.

        Raises:
            WaitlistEntryNotFoundError: If the entry does not exist.
        """
        async with self._uow_factory() as uow:
            entry = await uow.waitlist.get(waitlist_id)
        if not entry:
            raise WaitlistEntryNotFoundError(str(waitlist_id))
        return entry

    async def approve_entry(self, waitlist_id: UUID, invite_id: UUID) -> WaitlistEntry:
        """Move a pending entry to approved and link its invite.

        Raises:
            WaitlistEntryNotFoundError: If the entry does not exist.
            InvalidWaitlistTransitionError: If the entry is not pending.
        """
        async with self._uow_factory() as uow:
            updated = await uow.waitlist.transition(
                waitlist_id, WaitlistStatus.APPROVED, invite_id=invite_id
            )
            if updated is None:
                raise await self._transition_error(uow, waitlist_id, WaitlistStatus.APPROVED)
            await uow.commit()

        logger.info("waitlist_entry_approved", waitlist_id=str(waitlist_id), invite_id=str(invite_id))

        if self._events:
            await self._events.emit(WaitlistApproved(waitlist_id=waitlist_id, invite_id=invite_id))

        return updated

    async def reject_entry(self, waitlist_id: UUID) -> WaitlistEntry:
        """Move a pending entry to rejected.

        Raises:
            WaitlistEntryNotFoundError: If the entry does not exist.
            InvalidWaitlistTransitionError: If the entry is not pending.
        """
        async with self._uow_factory() as uow:
            updated = await uow.waitlist.transition(waitlist_id, WaitlistStatus.REJECTED)
            if updated is None:
                raise await self._transition_error(uow, waitlist_id, WaitlistStatus.REJECTED)
            await uow.commit()

        logger.info("waitlist_entry_rejected", waitlist_id=str(waitlist_id))

        if self._events:
            await self._events.emit(WaitlistRejected(waitlist_id=waitlist_id))

        return updated

    # --- Internal helpers ---

    async def _transition_error(
        self,
        uow: IUnitOfWork,
        waitlist_id: UUID,
        target: WaitlistStatus,
    ) -> WaitlistEntryNotFoundError | InvalidWaitlistTransitionError:
        """Explain why a transition matched no pending row."""
        entry = await uow.waitlist.get(waitlist_id)
        if not entry:
            return WaitlistEntryNotFoundError(str(waitlist_id))
        logger.info(
            "waitlist_transition_rejected",
            waitlist_id=str(waitlist_id),
            current_status=entry.status.value,
            target_status=target.value,
        )
        return InvalidWaitlistTransitionError(
            str(waitlist_id),
            current_status=entry.status.value,
            target_status=target.value,
        )
