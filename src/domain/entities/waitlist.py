"""Waitlist domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class WaitlistStatus(StrEnum):
    """Status of a waitlist entry. Approved and rejected are terminal."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass
class WaitlistEntry:
    """Domain entity for a waitlist signup."""

    email: str
    first_name: str | None = None
    last_name: str | None = None
    organization_name: str | None = None
    job_title: str | None = None
    interest_reason: str | None = None
    use_case: str | None = None
    feedback_importance: int | None = None
    subscribe_newsletter: bool = False
    status: WaitlistStatus = WaitlistStatus.PENDING
    invite_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_pending(self) -> bool:
        return self.status == WaitlistStatus.PENDING

