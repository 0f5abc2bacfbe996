"""Admin invite management routes."""

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import AdminUser, get_current_admin, require_admin_enabled
from api.dependencies.security import get_request_context, rate_limit, verify_origin
from api.v1.dependencies import get_invite_service
from api.v1.schemas.common import SuccessResponse
from api.v1.schemas.invite import (
    CreatedInvite,
    CreateInviteRequest,
    InviteCreatedResponse,
    InviteListResponse,
    InviteResentResponse,
    InviteSummary,
    ResendInviteRequest,
    RevokeInviteRequest,
)
from core.rate_limit import RateLimitCategory
from domain.entities.invite import InviteStatus
from domain.services.invite_service import InviteService

router = APIRouter(
    prefix="/admin/invites",
    tags=["admin-invites"],
    dependencies=[Depends(require_admin_enabled)],
)

_ADMIN_ERRORS = {
    401: {"description": "Not authenticated"},
    403: {"description": "Admin role required or origin not allowed"},
}


@router.post(
    "/create",
    response_model=InviteCreatedResponse,
    summary="Create an invite",
    dependencies=[
        Depends(verify_origin),
        Depends(get_current_admin),
        Depends(rate_limit(RateLimitCategory.ADMIN)),
    ],
    responses={**_ADMIN_ERRORS, 429: {"description": "Rate limit exceeded"}},
)
async def create_invite(
    request: Request,
    body: CreateInviteRequest,
    admin: AdminUser,
    service: InviteService = Depends(get_invite_service),
) -> InviteCreatedResponse:
    """Issue a magic link. The link is returned once and emailed to the recipient."""
    result = await service.create_invite(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        expires_in_minutes=body.expires_in_minutes,
        max_uses=body.max_uses,
        purpose=body.purpose,
        sent_by_user_id=admin.id,
        context=get_request_context(request),
    )
    return InviteCreatedResponse(invite=CreatedInvite.from_result(result))


@router.post(
    "/revoke",
    response_model=SuccessResponse,
    summary="Revoke an invite",
    dependencies=[Depends(verify_origin)],
    responses={**_ADMIN_ERRORS, 404: {"description": "Invite not found"}},
)
async def revoke_invite(
    body: RevokeInviteRequest,
    admin: AdminUser,
    service: InviteService = Depends(get_invite_service),
) -> SuccessResponse:
    """Revoke an invite. Revoking an already revoked invite succeeds."""
    await service.revoke_invite(body.invite_id)
    return SuccessResponse()


@router.post(
    "/resend",
    response_model=InviteResentResponse,
    summary="Resend an invite",
    dependencies=[
        Depends(verify_origin),
        Depends(get_current_admin),
        Depends(rate_limit(RateLimitCategory.ADMIN)),
    ],
    responses={**_ADMIN_ERRORS, 429: {"description": "Rate limit exceeded"}},
)
async def resend_invite(
    request: Request,
    body: ResendInviteRequest,
    admin: AdminUser,
    service: InviteService = Depends(get_invite_service),
) -> InviteResentResponse:
    """Revoke every live invite for the email and issue a new one."""
    result, revoked_count = await service.resend_invite(
        email=body.email,
        sent_by_user_id=admin.id,
        context=get_request_context(request),
    )
    return InviteResentResponse(
        invite=CreatedInvite.from_result(result),
        revoked_count=revoked_count,
    )


@router.get(
    "/list",
    response_model=InviteListResponse,
    summary="List invites",
    responses=_ADMIN_ERRORS,
)
async def list_invites(
    admin: AdminUser,
    status: InviteStatus | None = Query(None, description="Filter by derived status"),
    email: str | None = Query(None, max_length=255),
    service: InviteService = Depends(get_invite_service),
) -> InviteListResponse:
    """List invites, most recent first, each with its derived status."""
    invites = await service.list_invites(status=status, email=email)
    return InviteListResponse(
        invites=[
            InviteSummary(
                invite_id=invite.id,
                email=invite.email,
                slug=invite.url_slug,
                status=service.get_invite_status(invite).value,
                expires_at=invite.expires_at,
                max_uses=invite.max_uses,
                current_uses=invite.current_uses,
                purpose=invite.purpose,
                created_at=invite.created_at,
                used_at=invite.used_at,
            )
            for invite in invites
        ]
    )
