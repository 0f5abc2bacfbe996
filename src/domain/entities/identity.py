"""User, organization and role entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any
from uuid import UUID, uuid4


class Role(IntEnum):
    """Role ordinals. Lower value = more privileged.

    Use <= comparison for permission checks:
        user_role <= Role.ADMIN  # True only for admins
    """

    ADMIN = 1
    USER = 2


# Scopes granted to users created through magic-link onboarding
DEFAULT_USER_SCOPES = ["demo_read", "demo_analyze"]


@dataclass
class OnboardingType:
    """Static reference data naming how an organization was onboarded."""

    name: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Organization:
    """Domain entity for an organization."""

    name: str
    slug: str
    onboarding_type_id: UUID | None = None
    settings: dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class User:
    """Domain entity for a user belonging to one organization."""

    email: str
    org_id: UUID
    role_id: Role = Role.USER
    first_name: str | None = None
    last_name: str | None = None
    display_name: str | None = None
    avatar_url: str | None = None
    preferences: dict[str, Any] = field(default_factory=dict)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
