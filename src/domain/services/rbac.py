"""Role-based access checks.

Roles are ordinals where a lower value is more privileged, so a user
satisfies ``required`` when ``user.role_id <= required``.
"""

from typing import Protocol

from core.exceptions import AuthenticationError, InsufficientPermissionsError
from domain.entities.identity import Role


class HasRole(Protocol):
    role_id: int


def has_permission(user_role: int, required_role: Role) -> bool:
    """Check if a role meets or exceeds the required role level."""
    return user_role <= required_role


def require_role(required: Role, user: HasRole | None) -> HasRole:
    """Return ``user`` if it holds ``required`` or better.

    Raises:
        AuthenticationError: If there is no user (401).
        InsufficientPermissionsError: If the user's role is too weak (403).
    """
    if user is None:
        raise AuthenticationError()
    if not has_permission(user.role_id, required):
        raise InsufficientPermissionsError(required.name.lower())
    return user


def can_create_invites(user: HasRole) -> bool:
    return has_permission(user.role_id, Role.ADMIN)


def can_revoke_invites(user: HasRole) -> bool:
    return has_permission(user.role_id, Role.ADMIN)


def can_approve_waitlist(user: HasRole) -> bool:
    return has_permission(user.role_id, Role.ADMIN)


def can_view_waitlist(user: HasRole) -> bool:
    return has_permission(user.role_id, Role.ADMIN)
