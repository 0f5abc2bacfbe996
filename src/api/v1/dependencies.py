"""Dependency injection factories for API v1."""

from fastapi import Depends

from api.dependencies.auth import get_container
from domain.services.auth_service import AuthService
from domain.services.invite_service import InviteService
from domain.services.waitlist_service import WaitlistService
from infrastructure.container import ServiceContainer


def get_invite_service(container: ServiceContainer = Depends(get_container)) -> InviteService:
    """Get Invite service instance."""
    return container.invite_service


def get_waitlist_service(container: ServiceContainer = Depends(get_container)) -> WaitlistService:
    """Get Waitlist service instance."""
    return container.waitlist_service


def get_auth_service(container: ServiceContainer = Depends(get_container)) -> AuthService:
    """Get Auth service instance."""
    return container.auth_service
