"""Lifecycle events published on the event bus."""

from dataclasses import dataclass
from enum import StrEnum
from typing import ClassVar
from uuid import UUID


class EventType(StrEnum):
    """Event names."""

    USER_CREATED = "user.created"
    INVITE_CREATED = "invite.created"
    INVITE_ACCEPTED = "invite.accepted"
    INVITE_REVOKED = "invite.revoked"
    INVITE_EXPIRED = "invite.expired"
    WAITLIST_JOINED = "waitlist.joined"
    WAITLIST_APPROVED = "waitlist.approved"
    WAITLIST_REJECTED = "waitlist.rejected"


@dataclass(frozen=True)
class UserCreated:
    type: ClassVar[EventType] = EventType.USER_CREATED

    user_id: UUID
    email: str
    org_id: UUID


@dataclass(frozen=True)
class InviteCreated:
    """Carries the magic link so in-process subscribers can deliver it."""

    type: ClassVar[EventType] = EventType.INVITE_CREATED

    invite_id: UUID
    email: str
    magic_link: str
    expires_in_minutes: int
    first_name: str | None = None


@dataclass(frozen=True)
class InviteAccepted:
    type: ClassVar[EventType] = EventType.INVITE_ACCEPTED

    invite_id: UUID
    user_id: UUID


@dataclass(frozen=True)
class InviteRevoked:
    type: ClassVar[EventType] = EventType.INVITE_REVOKED

    invite_id: UUID


@dataclass(frozen=True)
class InviteExpired:
    type: ClassVar[EventType] = EventType.INVITE_EXPIRED

    invite_id: UUID


@dataclass(frozen=True)
class WaitlistJoined:
    type: ClassVar[EventType] = EventType.WAITLIST_JOINED

    waitlist_id: UUID
    email: str
    first_name: str | None = None


@dataclass(frozen=True)
class WaitlistApproved:
    type: ClassVar[EventType] = EventType.WAITLIST_APPROVED

    waitlist_id: UUID
    invite_id: UUID


@dataclass(frozen=True)
class WaitlistRejected:
    type: ClassVar[EventType] = EventType.WAITLIST_REJECTED

    waitlist_id: UUID


Event = (
    UserCreated
    | InviteCreated
    | InviteAccepted
    | InviteRevoked
    | InviteExpired
    | WaitlistJoined
    | WaitlistApproved
    | WaitlistRejected
)
