"""Pydantic schemas for waitlist endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from api.v1.schemas.common import CamelModel
from api.v1.schemas.validators import normalize_email
from domain.entities.waitlist import WaitlistEntry


class JoinWaitlistRequest(CamelModel):
    """Schema for a waitlist signup."""

    email: str = Field(..., min_length=3, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    organization_name: str | None = Field(None, max_length=255)
    job_title: str | None = Field(None, max_length=255)
    interest_reason: str | None = Field(None, max_length=2000)
    use_case: str | None = Field(None, max_length=2000)
    feedback_importance: int | None = Field(None, ge=1, le=10)
    subscribe_newsletter: bool = False

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class JoinWaitlistResponse(CamelModel):
    success: bool = True
    waitlist_id: UUID


class WaitlistActionRequest(CamelModel):
    waitlist_id: UUID


class WaitlistEntryResponse(CamelModel):
    waitlist_id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    organization_name: str | None = None
    job_title: str | None = None
    interest_reason: str | None = None
    use_case: str | None = None
    feedback_importance: int | None = None
    status: str
    invite_id: UUID | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, entry: WaitlistEntry) -> "WaitlistEntryResponse":
        return cls(
            waitlist_id=entry.id,
            email=entry.email,
            first_name=entry.first_name,
            last_name=entry.last_name,
            organization_name=entry.organization_name,
            job_title=entry.job_title,
            interest_reason=entry.interest_reason,
            use_case=entry.use_case,
            feedback_importance=entry.feedback_importance,
            status=entry.status.value,
            invite_id=entry.invite_id,
            created_at=entry.created_at,
        )


class WaitlistListResponse(CamelModel):
    success: bool = True
    entries: list[WaitlistEntryResponse]


class WaitlistApprovedResponse(CamelModel):
    success: bool = True
    invite_id: UUID
    magic_link: str
    expires_in_minutes: int
    max_uses: int
