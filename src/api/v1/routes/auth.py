"""Magic-link accept, logout and session routes."""

import structlog
from fastapi import APIRouter, Depends, Request, Response

from api.dependencies.auth import CurrentSession, get_container
from api.dependencies.security import get_request_context, rate_limit, verify_origin
from api.v1.dependencies import get_auth_service
from api.v1.schemas.auth import AcceptInviteRequest, SessionResponse
from api.v1.schemas.common import SuccessResponse
from core.rate_limit import RateLimitCategory
from domain.services.auth_service import AuthService
from infrastructure.container import ServiceContainer

logger = structlog.get_logger()

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/accept",
    response_model=SuccessResponse,
    summary="Redeem a magic link",
    dependencies=[Depends(verify_origin), Depends(rate_limit(RateLimitCategory.AUTH))],
    responses={
        200: {"description": "Invite redeemed, session cookie set"},
        401: {"description": "Invalid or expired invite"},
        403: {"description": "Origin not allowed"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def accept_invite(
    request: Request,
    response: Response,
    body: AcceptInviteRequest,
    service: AuthService = Depends(get_auth_service),
    container: ServiceContainer = Depends(get_container),
) -> SuccessResponse:
    """Redeem an invite and start a session.

    Every redemption failure yields the same 401 response.
    """
    context = get_request_context(request)
    login = await service.accept_invite(body.slug, body.token, context)

    session_token = container.session_codec.create_session_token(
        ip=context.ip,
        user_agent=context.user_agent,
        org_id=login.organization.id,
        user_id=login.user.id,
        role_id=int(login.user.role_id),
        display_name=login.user.display_name,
    )
    response.set_cookie(
        key=container.settings.session_cookie_name,
        value=session_token,
        max_age=container.session_codec.max_age_seconds,
        path="/",
        httponly=True,
        secure=container.settings.is_production,
        samesite="lax",
    )

    logger.info(
        "invite_accepted",
        invite_id=str(login.invite.id),
        user_id=str(login.user.id),
        is_new_user=login.is_new_user,
    )
    return SuccessResponse()


@router.post(
    "/logout",
    response_model=SuccessResponse,
    summary="End the session",
    dependencies=[Depends(verify_origin)],
)
async def logout(
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> SuccessResponse:
    """Clear the session cookie. Sessions are stateless, so nothing else is revoked."""
    response.delete_cookie(
        key=container.settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=container.settings.is_production,
        samesite="lax",
    )
    logger.info("user_logged_out")
    return SuccessResponse()


@router.get(
    "/session",
    response_model=SessionResponse,
    summary="Current session",
    responses={401: {"description": "No valid session"}},
)
async def get_session(session: CurrentSession) -> SessionResponse:
    """Return the caller's verified session claims."""
    return SessionResponse(
        user_id=session.user_id,
        org_id=session.org_id,
        role_id=session.role_id,
        display_name=session.display_name,
        expires_at=int(session.expires_at.timestamp()),
    )
