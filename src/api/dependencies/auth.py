"""Authentication dependencies for FastAPI."""

from typing import Annotated

import structlog
from fastapi import Depends, Request

from core.exceptions import AuthenticationError, ErrorCode, ServiceUnavailableError
from domain.entities.identity import Role, User
from domain.services.rbac import require_role
from infrastructure.auth.session_codec import SessionCodec, SessionPayload
from infrastructure.container import ServiceContainer

logger = structlog.get_logger()


def get_container(request: Request) -> ServiceContainer:
    """The service container attached to the running application."""
    return request.app.state.container  # type: ignore[no-any-return]


def get_session_codec(
    container: ServiceContainer = Depends(get_container),
) -> SessionCodec:
    return container.session_codec


async def get_session(
    request: Request,
    codec: SessionCodec = Depends(get_session_codec),
    container: ServiceContainer = Depends(get_container),
) -> SessionPayload:
    """
    Dependency to get the verified session from the session cookie.

    Raises:
        AuthenticationError: If the cookie is missing or the session is invalid
    """
    token = request.cookies.get(container.settings.session_cookie_name)
    if not token:
        raise AuthenticationError()

    payload = codec.verify_session_token(token)
    if not payload:
        logger.info("session_rejected")
        raise AuthenticationError(error_code=ErrorCode.INVALID_SESSION)

    return payload


async def get_current_user(
    session: Annotated[SessionPayload, Depends(get_session)],
    container: ServiceContainer = Depends(get_container),
) -> User:
    """
    Dependency to get the current user, re-loaded from the database.

    Role changes and deletions take effect on the next request rather than
    when the session expires.

    Raises:
        AuthenticationError: If the session is invalid or the user is gone
    """
    async with container.uow_factory() as uow:
        user = await uow.users.get(session.user_id)

    if not user:
        logger.warning("session_user_not_found", user_id=str(session.user_id))
        raise AuthenticationError()

    return user


async def get_current_admin(
    user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency that requires the ADMIN role.

    Raises:
        InsufficientPermissionsError: If the user is not an admin
    """
    require_role(Role.ADMIN, user)
    return user


async def require_admin_enabled(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> None:
    """Reject admin endpoints while the admin surface is switched off."""
    if not container.settings.admin_ui_enabled:
        raise ServiceUnavailableError("Admin API is not available")


# Type aliases for convenience in route handlers
CurrentSession = Annotated[SessionPayload, Depends(get_session)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_current_admin)]
