"""Pydantic schemas for the accept/logout/session endpoints."""

from uuid import UUID

from pydantic import Field

from api.v1.schemas.common import CamelModel


class AcceptInviteRequest(CamelModel):
    """Schema for redeeming a magic link."""

    slug: str = Field(..., min_length=1, max_length=64)
    token: str = Field(..., min_length=1, max_length=256)

    model_config = {
        "json_schema_extra": {
            "example": {"slug": "aB3dE5gH7j", "token": "base64url-token"},
        }
    }


class SessionResponse(CamelModel):
    """The caller's verified session."""

    success: bool = True
    user_id: UUID
    org_id: UUID
    role_id: int
    display_name: str | None = None
    expires_at: int
