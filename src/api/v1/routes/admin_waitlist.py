"""Admin waitlist management routes."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import AdminUser, require_admin_enabled
from api.dependencies.security import get_request_context, verify_origin
from api.v1.dependencies import get_invite_service, get_waitlist_service
from api.v1.schemas.common import SuccessResponse
from api.v1.schemas.waitlist import (
    WaitlistActionRequest,
    WaitlistApprovedResponse,
    WaitlistEntryResponse,
    WaitlistListResponse,
)
from core.exceptions import InvalidWaitlistTransitionError
from domain.entities.invite import InvitePurpose
from domain.entities.waitlist import WaitlistStatus
from domain.services.invite_service import InviteService
from domain.services.waitlist_service import WaitlistService

logger = structlog.get_logger()

router = APIRouter(
    prefix="/admin/waitlist",
    tags=["admin-waitlist"],
    dependencies=[Depends(require_admin_enabled)],
)

_ADMIN_ERRORS = {
    401: {"description": "Not authenticated"},
    403: {"description": "Admin role required or origin not allowed"},
}


@router.get(
    "/list",
    response_model=WaitlistListResponse,
    summary="List waitlist entries",
    responses=_ADMIN_ERRORS,
)
async def list_entries(
    admin: AdminUser,
    status: WaitlistStatus | None = Query(None),
    date_from: datetime | None = Query(None, alias="dateFrom"),
    date_to: datetime | None = Query(None, alias="dateTo"),
    service: WaitlistService = Depends(get_waitlist_service),
) -> WaitlistListResponse:
    """List entries, most recent first."""
    entries = await service.list_entries(status=status, date_from=date_from, date_to=date_to)
    return WaitlistListResponse(entries=[WaitlistEntryResponse.from_entity(e) for e in entries])


@router.post(
    "/approve",
    response_model=WaitlistApprovedResponse,
    summary="Approve a waitlist entry",
    dependencies=[Depends(verify_origin)],
    responses={
        **_ADMIN_ERRORS,
        404: {"description": "Entry not found"},
        409: {"description": "Entry is not pending"},
    },
)
async def approve_entry(
    request: Request,
    body: WaitlistActionRequest,
    admin: AdminUser,
    waitlist_service: WaitlistService = Depends(get_waitlist_service),
    invite_service: InviteService = Depends(get_invite_service),
) -> WaitlistApprovedResponse:
    """Issue an invite for a pending entry and mark it approved."""
    entry = await waitlist_service.get_entry(body.waitlist_id)
    if not entry.is_pending:
        raise InvalidWaitlistTransitionError(
            str(entry.id),
            current_status=entry.status.value,
            target_status=WaitlistStatus.APPROVED.value,
        )

    result = await invite_service.create_invite(
        email=entry.email,
        first_name=entry.first_name,
        last_name=entry.last_name,
        purpose=InvitePurpose.WAITLIST_APPROVAL,
        sent_by_user_id=admin.id,
        context=get_request_context(request),
    )
    try:
        await waitlist_service.approve_entry(entry.id, result.invite_id)
    except Exception:
        # The entry did not move to approved; its invite must not stay live.
        await invite_service.revoke_invite(result.invite_id)
        logger.warning(
            "waitlist_approval_invite_revoked",
            waitlist_id=str(entry.id),
            invite_id=str(result.invite_id),
        )
        raise

    return WaitlistApprovedResponse(
        invite_id=result.invite_id,
        magic_link=result.magic_link,
        expires_in_minutes=result.expires_in_minutes,
        max_uses=result.max_uses,
    )


@router.post(
    "/reject",
    response_model=SuccessResponse,
    summary="Reject a waitlist entry",
    dependencies=[Depends(verify_origin)],
    responses={
        **_ADMIN_ERRORS,
        404: {"description": "Entry not found"},
        409: {"description": "Entry is not pending"},
    },
)
async def reject_entry(
    body: WaitlistActionRequest,
    admin: AdminUser,
    service: WaitlistService = Depends(get_waitlist_service),
) -> SuccessResponse:
    """Reject a pending entry."""
    await service.reject_entry(body.waitlist_id)
    return SuccessResponse()
