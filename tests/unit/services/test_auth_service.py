"""Unit tests for AuthService."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from core.exceptions import DuplicateUserError, InviteRedemptionError
from domain.entities.events import InviteAccepted
from domain.entities.identity import Organization, Role, User
from domain.entities.invite import Invite, InviteFailureReason, RequestContext
from domain.services.auth_service import AuthService
from domain.services.onboarding_service import MAGIC_LINK_ONBOARDING, OnboardingResult
from tests.unit.conftest import FIXED_NOW, FakeUnitOfWork, RecordingBus


@pytest.fixture
def consumed_invite() -> Invite:
    return Invite(
        email="jane@example.com",
        token_hash="hash",
        url_slug="AbCdEf1234",
        expires_at=FIXED_NOW + timedelta(minutes=15),
        first_name="Jane",
        current_uses=1,
        used_at=FIXED_NOW,
    )


@pytest.fixture
def invite_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def onboarding_service() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(
    uow: FakeUnitOfWork,
    bus: RecordingBus,
    invite_service: AsyncMock,
    onboarding_service: AsyncMock,
) -> AuthService:
    return AuthService(lambda: uow, invite_service, onboarding_service, event_bus=bus)


class TestAcceptInvite:
    @pytest.mark.asyncio
    async def test_existing_user_logs_in(
        self,
        service: AuthService,
        uow: FakeUnitOfWork,
        bus: RecordingBus,
        invite_service: AsyncMock,
        onboarding_service: AsyncMock,
        consumed_invite: Invite,
    ) -> None:
        org = Organization(name="Existing", slug="existing")
        user = User(email="jane@example.com", org_id=org.id, role_id=Role.ADMIN)
        invite_service.consume_invite.return_value = consumed_invite
        uow.users.get_by_email.return_value = user
        uow.organizations.get.return_value = org

        login = await service.accept_invite("AbCdEf1234", "token", RequestContext())

        assert login.user is user
        assert login.organization is org
        assert not login.is_new_user
        onboarding_service.create_org_with_onboarding.assert_not_called()
        assert bus.emitted == [InviteAccepted(invite_id=consumed_invite.id, user_id=user.id)]

    @pytest.mark.asyncio
    async def test_new_user_is_onboarded(
        self,
        service: AuthService,
        uow: FakeUnitOfWork,
        invite_service: AsyncMock,
        onboarding_service: AsyncMock,
        consumed_invite: Invite,
    ) -> None:
        org = Organization(name="jane@example.com's Workspace", slug="jane-example-abc123")
        user = User(email="jane@example.com", org_id=org.id)
        invite_service.consume_invite.return_value = consumed_invite
        uow.users.get_by_email.return_value = None
        onboarding_service.create_org_with_onboarding.return_value = OnboardingResult(
            user=user, organization=org
        )

        login = await service.accept_invite("AbCdEf1234", "token", RequestContext())

        assert login.is_new_user
        assert login.user is user
        onboarding_service.create_org_with_onboarding.assert_awaited_once_with(
            "jane@example.com",
            MAGIC_LINK_ONBOARDING,
            first_name="Jane",
            last_name=None,
        )

    @pytest.mark.parametrize("reason", list(InviteFailureReason))
    @pytest.mark.asyncio
    async def test_every_failure_raises_same_error(
        self,
        service: AuthService,
        bus: RecordingBus,
        invite_service: AsyncMock,
        reason: InviteFailureReason,
    ) -> None:
        invite_service.consume_invite.return_value = None
        invite_service.diagnose_failure.return_value = reason

        with pytest.raises(InviteRedemptionError) as exc_info:
            await service.accept_invite("AbCdEf1234", "token", RequestContext())

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid or expired invite"
        assert exc_info.value.reason == reason.value
        assert bus.emitted == []

    @pytest.mark.asyncio
    async def test_user_without_org_is_an_error(
        self,
        service: AuthService,
        uow: FakeUnitOfWork,
        invite_service: AsyncMock,
        consumed_invite: Invite,
    ) -> None:
        invite_service.consume_invite.return_value = consumed_invite
        uow.users.get_by_email.return_value = User(email="jane@example.com", org_id=consumed_invite.id)
        uow.organizations.get.return_value = None

        with pytest.raises(RuntimeError):
            await service.accept_invite("AbCdEf1234", "token", RequestContext())

    @pytest.mark.asyncio
    async def test_lost_onboarding_race_logs_in_existing_user(
        self,
        service: AuthService,
        uow: FakeUnitOfWork,
        bus: RecordingBus,
        invite_service: AsyncMock,
        onboarding_service: AsyncMock,
        consumed_invite: Invite,
    ) -> None:
        org = Organization(name="jane@example.com's Workspace", slug="jane-example-abc123")
        winner = User(email="jane@example.com", org_id=org.id)
        invite_service.consume_invite.return_value = consumed_invite
        uow.users.get_by_email.side_effect = [None, winner]
        uow.organizations.get.return_value = org
        onboarding_service.create_org_with_onboarding.side_effect = DuplicateUserError("jane@example.com")

        login = await service.accept_invite("AbCdEf1234", "token", RequestContext())

        assert login.user is winner
        assert login.organization is org
        assert not login.is_new_user
        assert bus.emitted == [InviteAccepted(invite_id=consumed_invite.id, user_id=winner.id)]

    @pytest.mark.asyncio
    async def test_duplicate_without_visible_user_propagates(
        self,
        service: AuthService,
        uow: FakeUnitOfWork,
        invite_service: AsyncMock,
        onboarding_service: AsyncMock,
        consumed_invite: Invite,
    ) -> None:
        invite_service.consume_invite.return_value = consumed_invite
        uow.users.get_by_email.return_value = None
        onboarding_service.create_org_with_onboarding.side_effect = DuplicateUserError("jane@example.com")

        with pytest.raises(DuplicateUserError):
            await service.accept_invite("AbCdEf1234", "token", RequestContext())
