"""Pydantic schemas for admin invite endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from api.v1.schemas.common import CamelModel
from api.v1.schemas.validators import normalize_email
from domain.entities.invite import InvitePurpose, InviteResult


class CreateInviteRequest(CamelModel):
    """Schema for creating an invite."""

    email: str = Field(..., min_length=3, max_length=255)
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    expires_in_minutes: int | None = Field(None, ge=1, le=60 * 24 * 30)
    max_uses: int | None = Field(None, ge=1, le=100)
    purpose: InvitePurpose = InvitePurpose.ADMIN_CREATED

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "user@example.com",
                "firstName": "Jane",
                "lastName": "Doe",
                "expiresInMinutes": 15,
                "maxUses": 3,
            }
        }
    }


class RevokeInviteRequest(CamelModel):
    invite_id: UUID


class ResendInviteRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class CreatedInvite(CamelModel):
    """A freshly issued invite, including its one-time magic link."""

    invite_id: UUID
    slug: str
    magic_link: str
    expires_at: datetime
    expires_in_minutes: int
    max_uses: int

    @classmethod
    def from_result(cls, result: InviteResult) -> "CreatedInvite":
        return cls(
            invite_id=result.invite_id,
            slug=result.slug,
            magic_link=result.magic_link,
            expires_at=result.expires_at,
            expires_in_minutes=result.expires_in_minutes,
            max_uses=result.max_uses,
        )


class InviteCreatedResponse(CamelModel):
    success: bool = True
    invite: CreatedInvite


class InviteResentResponse(CamelModel):
    success: bool = True
    invite: CreatedInvite
    revoked_count: int


class InviteSummary(CamelModel):
    """Invite as shown in admin listings. Never includes the token or hash."""

    invite_id: UUID
    email: str
    slug: str
    status: str
    expires_at: datetime
    max_uses: int
    current_uses: int
    purpose: str
    created_at: datetime
    used_at: datetime | None = None


class InviteListResponse(CamelModel):
    success: bool = True
    invites: list[InviteSummary]
