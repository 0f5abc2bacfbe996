"""Unit tests for InviteService."""

from dataclasses import replace
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

import pytest

from core.exceptions import InviteNotFoundError
from domain.entities.events import InviteCreated, InviteRevoked
from domain.entities.invite import (
    Invite,
    InviteFailureReason,
    InvitePurpose,
    InviteStatus,
    RequestContext,
)
from domain.services.invite_service import InviteService
from infrastructure.auth.token_crypto import hash_token
from tests.unit.conftest import FIXED_NOW, PEPPER, FakeUnitOfWork, RecordingBus, passthrough


@pytest.fixture
def service(uow: FakeUnitOfWork, bus: RecordingBus) -> InviteService:
    return InviteService(
        lambda: uow,
        event_bus=bus,
        pepper=PEPPER,
        app_url="https://app.example.com/",
        default_expiry_minutes=15,
        default_max_uses=3,
        clock=lambda: FIXED_NOW,
    )


def _invite(**overrides: Any) -> Invite:
    invite = Invite(
        email="jane@example.com",
        token_hash=hash_token("secret", PEPPER),
        url_slug="AbCdEf1234",
        expires_at=FIXED_NOW + timedelta(minutes=15),
    )
    return replace(invite, **overrides)


# --- create_invite ---


class TestCreateInvite:
    @pytest.mark.asyncio
    async def test_stores_only_hash_and_returns_link(
        self, service: InviteService, uow: FakeUnitOfWork, bus: RecordingBus
    ) -> None:
        uow.invites.create.side_effect = passthrough

        result = await service.create_invite(email="  Jane@Example.com ")

        stored: Invite = uow.invites.create.call_args.args[0]
        assert stored.email == "jane@example.com"
        assert stored.token_hash == hash_token(result.token, PEPPER)
        assert result.token not in stored.token_hash
        assert stored.url_slug == result.slug
        assert result.magic_link == f"https://app.example.com/accept/{result.slug}#t={result.token}"
        assert uow.committed

    @pytest.mark.asyncio
    async def test_applies_defaults(self, service: InviteService, uow: FakeUnitOfWork) -> None:
        uow.invites.create.side_effect = passthrough

        result = await service.create_invite(email="jane@example.com")

        stored: Invite = uow.invites.create.call_args.args[0]
        assert stored.expires_at == FIXED_NOW + timedelta(minutes=15)
        assert stored.max_uses == 3
        assert stored.purpose == "invite"
        assert result.expires_in_minutes == 15
        assert result.max_uses == 3

    @pytest.mark.asyncio
    async def test_records_issuer_fingerprint(
        self, service: InviteService, uow: FakeUnitOfWork, user_id: UUID
    ) -> None:
        uow.invites.create.side_effect = passthrough

        await service.create_invite(
            email="jane@example.com",
            expires_in_minutes=60,
            max_uses=1,
            purpose=InvitePurpose.ADMIN_CREATED,
            sent_by_user_id=user_id,
            context=RequestContext(ip="203.0.113.9", user_agent="Mozilla/5.0"),
        )

        stored: Invite = uow.invites.create.call_args.args[0]
        assert stored.ip_prefix == "203.0.113.0"
        assert stored.ua_hash is not None and len(stored.ua_hash) == 16
        assert stored.sent_by_user_id == user_id
        assert stored.purpose == "admin_created"
        assert stored.max_uses == 1

    @pytest.mark.asyncio
    async def test_emits_invite_created(
        self, service: InviteService, uow: FakeUnitOfWork, bus: RecordingBus
    ) -> None:
        uow.invites.create.side_effect = passthrough

        result = await service.create_invite(email="jane@example.com", first_name="Jane")

        assert len(bus.emitted) == 1
        event = bus.emitted[0]
        assert isinstance(event, InviteCreated)
        assert event.invite_id == result.invite_id
        assert event.magic_link == result.magic_link
        assert event.first_name == "Jane"


# --- consume_invite ---


class TestConsumeInvite:
    @pytest.mark.asyncio
    async def test_passes_hash_and_fingerprint_to_atomic_consume(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        consumed = _invite(current_uses=1, used_at=FIXED_NOW)
        uow.invites.atomic_consume.return_value = consumed

        result = await service.consume_invite(
            "AbCdEf1234", "secret", RequestContext(ip="198.51.100.20", user_agent="ua")
        )

        assert result is consumed
        kwargs = uow.invites.atomic_consume.call_args.kwargs
        assert kwargs["slug"] == "AbCdEf1234"
        assert kwargs["token_hash"] == hash_token("secret", PEPPER)
        assert kwargs["used_ip_prefix"] == "198.51.100.0"
        assert kwargs["now"] == FIXED_NOW
        assert uow.committed

    @pytest.mark.asyncio
    async def test_failure_returns_none_without_commit(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        uow.invites.atomic_consume.return_value = None

        result = await service.consume_invite("AbCdEf1234", "wrong", RequestContext())

        assert result is None
        assert not uow.committed


# --- validate_invite / diagnose_failure ---


class TestDiagnosis:
    @pytest.mark.asyncio
    async def test_validate_returns_redeemable_invite(
        self, service: InviteService, uow: FakeUnitOfWork
    ) -> None:
        invite = _invite()
        uow.invites.get_by_slug.return_value = invite

        assert await service.validate_invite("AbCdEf1234") is invite

    @pytest.mark.parametrize(
        ("invite", "reason"),
        [
            (None, InviteFailureReason.NOT_FOUND),
            (_invite(revoked=True, expires_at=FIXED_NOW), InviteFailureReason.REVOKED),
            (_invite(expires_at=FIXED_NOW), InviteFailureReason.EXPIRED),
            (_invite(current_uses=3, max_uses=3), InviteFailureReason.ALREADY_USED),
            (_invite(), InviteFailureReason.INVALID_TOKEN),
        ],
    )
    @pytest.mark.asyncio
    async def test_reason_precedence(
        self,
        service: InviteService,
        uow: FakeUnitOfWork,
        invite: Invite | None,
        reason: InviteFailureReason,
    ) -> None:
        uow.invites.get_by_slug.return_value = invite

        assert await service.diagnose_failure("AbCdEf1234") == reason
        if reason is not InviteFailureReason.INVALID_TOKEN:
            assert await service.validate_invite("AbCdEf1234") is None


# --- revoke_invite ---


class TestRevokeInvite:
    @pytest.mark.asyncio
    async def test_revokes_and_emits(
        self, service: InviteService, uow: FakeUnitOfWork, bus: RecordingBus
    ) -> None:
        invite = _invite(revoked=True)
        uow.invites.revoke.return_value = invite

        result = await service.revoke_invite(invite.id)

        assert result.revoked
        assert uow.committed
        assert bus.emitted == [InviteRevoked(invite_id=invite.id)]

    @pytest.mark.asyncio
    async def test_unknown_invite_raises(self, service: InviteService, uow: FakeUnitOfWork) -> None:
        uow.invites.revoke.return_value = None

        with pytest.raises(InviteNotFoundError):
            await service.revoke_invite(uuid4())
        assert not uow.committed


# --- list_invites / status ---


class TestListInvites:
    @pytest.mark.asyncio
    async def test_filters_by_derived_status(self, service: InviteService, uow: FakeUnitOfWork) -> None:
        active = _invite()
        used = _invite(current_uses=1, used_at=FIXED_NOW)
        expired = _invite(expires_at=FIXED_NOW - timedelta(minutes=1))
        revoked = _invite(revoked=True)
        uow.invites.list_all.return_value = [active, used, expired, revoked]

        assert await service.list_invites(status="active") == [active]
        assert await service.list_invites(status=InviteStatus.USED) == [used]
        assert await service.list_invites(status="expired") == [expired]
        assert await service.list_invites(status="revoked") == [revoked]
        assert len(await service.list_invites()) == 4

    @pytest.mark.asyncio
    async def test_normalizes_email_filter(self, service: InviteService, uow: FakeUnitOfWork) -> None:
        uow.invites.list_all.return_value = []

        await service.list_invites(email=" Jane@Example.COM")

        assert uow.invites.list_all.call_args.kwargs["email"] == "jane@example.com"

    def test_status_precedence(self, service: InviteService) -> None:
        both = _invite(revoked=True, used_at=FIXED_NOW, expires_at=FIXED_NOW - timedelta(days=1))
        assert service.get_invite_status(both) == InviteStatus.REVOKED
        used_and_expired = _invite(used_at=FIXED_NOW, expires_at=FIXED_NOW - timedelta(days=1))
        assert service.get_invite_status(used_and_expired) == InviteStatus.USED
        assert service.get_invite_status(_invite(expires_at=FIXED_NOW)) == InviteStatus.EXPIRED


# --- resend_invite ---


class TestResendInvite:
    @pytest.mark.asyncio
    async def test_revokes_live_invites_and_issues_new(
        self, service: InviteService, uow: FakeUnitOfWork, bus: RecordingBus
    ) -> None:
        latest = _invite(first_name="Jane", last_name="Doe")
        older = _invite()
        already_revoked = _invite(revoked=True)
        uow.invites.get_for_email.return_value = [latest, older, already_revoked]
        uow.invites.create.side_effect = passthrough

        result, revoked_count = await service.resend_invite("Jane@Example.com")

        assert revoked_count == 2
        revoked_ids = {call.args[0] for call in uow.invites.revoke.call_args_list}
        assert revoked_ids == {latest.id, older.id}

        stored: Invite = uow.invites.create.call_args.args[0]
        assert stored.purpose == "resend"
        assert stored.first_name == "Jane"
        assert stored.last_name == "Doe"
        assert result.magic_link.endswith(f"#t={result.token}")

        revoked_events = [e for e in bus.emitted if isinstance(e, InviteRevoked)]
        assert len(revoked_events) == 2

    @pytest.mark.asyncio
    async def test_resend_without_prior_invites(self, service: InviteService, uow: FakeUnitOfWork) -> None:
        uow.invites.get_for_email.return_value = []
        uow.invites.create.side_effect = passthrough

        result, revoked_count = await service.resend_invite("new@example.com")

        assert revoked_count == 0
        assert result.token
        uow.invites.revoke.assert_not_called()
