"""Invite domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4

# Default number of redemptions allowed per invite
DEFAULT_MAX_USES = 3


class InviteStatus(StrEnum):
    """Derived status of an invite. Never stored."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"


class InvitePurpose(StrEnum):
    """Why an invite was issued."""

    INVITE = "invite"
    WAITLIST_APPROVAL = "waitlist_approval"
    RESEND = "resend"
    ADMIN_CREATED = "admin_created"


class InviteFailureReason(StrEnum):
    """Diagnostic reason for a failed redemption (logged, never returned)."""

    NOT_FOUND = "not_found"
    REVOKED = "revoked"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    INVALID_TOKEN = "invalid_token"


@dataclass
class Invite:
    """Domain entity for a magic-link invite.

    ``token_hash`` is the keyed hash of the one-time secret. The secret itself
    is never stored.
    """

    email: str
    token_hash: str
    url_slug: str
    expires_at: datetime
    first_name: str | None = None
    last_name: str | None = None
    max_uses: int = DEFAULT_MAX_USES
    current_uses: int = 0
    revoked: bool = False
    purpose: str = InvitePurpose.INVITE.value
    sent_by_user_id: UUID | None = None
    ua_hash: str | None = None
    ip_prefix: str | None = None
    used_at: datetime | None = None
    used_ua_hash: str | None = None
    used_ip_prefix: str | None = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=datetime.utcnow)

    def status(self, now: datetime | None = None) -> InviteStatus:
        """Derive status. Precedence: revoked, used, expired, active.

        An invite whose ``expires_at`` equals ``now`` is expired.
        """
        now = now or datetime.utcnow()
        if self.revoked:
            return InviteStatus.REVOKED
        if self.used_at is not None:
            return InviteStatus.USED
        if self.expires_at <= now:
            return InviteStatus.EXPIRED
        return InviteStatus.ACTIVE

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or datetime.utcnow())

    @property
    def has_uses_left(self) -> bool:
        return self.current_uses < self.max_uses

    def is_redeemable(self, now: datetime | None = None) -> bool:
        """Not revoked, not expired, and below the usage limit."""
        return not self.revoked and not self.is_expired(now) and self.has_uses_left


@dataclass(frozen=True)
class RequestContext:
    """Client context of the request that issues or consumes an invite."""

    ip: str = "unknown"
    user_agent: str = ""


@dataclass(frozen=True)
class InviteResult:
    """Returned once by invite creation. ``token`` is unrecoverable afterwards."""

    invite_id: UUID
    slug: str
    token: str
    magic_link: str
    expires_at: datetime
    expires_in_minutes: int
    max_uses: int
