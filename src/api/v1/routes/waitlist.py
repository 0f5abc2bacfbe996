"""Public waitlist routes."""

from fastapi import APIRouter, Depends, status

from api.dependencies.auth import get_container
from api.dependencies.security import rate_limit, verify_origin
from api.v1.dependencies import get_waitlist_service
from api.v1.schemas.waitlist import JoinWaitlistRequest, JoinWaitlistResponse
from core.exceptions import ServiceUnavailableError
from core.rate_limit import RateLimitCategory
from domain.services.waitlist_service import NewWaitlistEntry, WaitlistService
from infrastructure.container import ServiceContainer

router = APIRouter(prefix="/waitlist", tags=["waitlist"])


async def require_waitlist_enabled(
    container: ServiceContainer = Depends(get_container),
) -> None:
    if not container.settings.waitlist_enabled:
        raise ServiceUnavailableError("Waitlist is not available")


@router.post(
    "/join",
    response_model=JoinWaitlistResponse,
    status_code=status.HTTP_200_OK,
    summary="Join the waitlist",
    dependencies=[
        Depends(require_waitlist_enabled),
        Depends(verify_origin),
        Depends(rate_limit(RateLimitCategory.WAITLIST)),
    ],
    responses={
        403: {"description": "Origin not allowed"},
        409: {"description": "Email already registered"},
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Waitlist disabled"},
    },
)
async def join_waitlist(
    body: JoinWaitlistRequest,
    service: WaitlistService = Depends(get_waitlist_service),
) -> JoinWaitlistResponse:
    """Register interest. One entry per email address."""
    entry = await service.submit_entry(
        NewWaitlistEntry(
            email=body.email,
            first_name=body.first_name,
            last_name=body.last_name,
            organization_name=body.organization_name,
            job_title=body.job_title,
            interest_reason=body.interest_reason,
            use_case=body.use_case,
            feedback_importance=body.feedback_importance,
            subscribe_newsletter=body.subscribe_newsletter,
        )
    )
    return JoinWaitlistResponse(waitlist_id=entry.id)
