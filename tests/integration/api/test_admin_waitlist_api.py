"""Integration tests for admin waitlist review."""

from uuid import UUID

import pytest
from httpx import AsyncClient

from core.exceptions import InvalidWaitlistTransitionError
from infrastructure.container import ServiceContainer

BASE = "/api/magic-link/admin/waitlist"
JOIN_URL = "/api/magic-link/waitlist/join"


async def _join(client: AsyncClient, email: str, **extra: object) -> str:
    response = await client.post(JOIN_URL, json={"email": email, **extra})
    assert response.status_code == 200
    return str(response.json()["waitlistId"])


class TestListEntries:
    @pytest.mark.asyncio
    async def test_requires_admin(self, client: AsyncClient, user_headers: dict[str, str]) -> None:
        assert (await client.get(f"{BASE}/list")).status_code == 401
        assert (await client.get(f"{BASE}/list", headers=user_headers)).status_code == 403

    @pytest.mark.asyncio
    async def test_lists_and_filters(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        keep = await _join(client, "a@example.com", firstName="Ann", useCase="Reports")
        drop = await _join(client, "b@example.com")
        await client.post(f"{BASE}/reject", json={"waitlistId": drop}, headers=admin_headers)

        everything = (await client.get(f"{BASE}/list", headers=admin_headers)).json()["entries"]
        pending = (await client.get(f"{BASE}/list?status=pending", headers=admin_headers)).json()["entries"]

        assert len(everything) == 2
        assert [e["waitlistId"] for e in pending] == [keep]
        assert pending[0]["firstName"] == "Ann"
        assert pending[0]["useCase"] == "Reports"

    @pytest.mark.asyncio
    async def test_date_range_filter(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        await _join(client, "a@example.com")

        future = await client.get(f"{BASE}/list?dateFrom=2999-01-01T00:00:00", headers=admin_headers)
        past = await client.get(f"{BASE}/list?dateTo=2000-01-01T00:00:00", headers=admin_headers)
        wide = await client.get(
            f"{BASE}/list?dateFrom=2000-01-01T00:00:00&dateTo=2999-01-01T00:00:00", headers=admin_headers
        )

        assert future.json()["entries"] == []
        assert past.json()["entries"] == []
        assert len(wide.json()["entries"]) == 1


class TestApproveReject:
    @pytest.mark.asyncio
    async def test_approve_issues_working_invite(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        waitlist_id = await _join(client, "jane@example.com", firstName="Jane", lastName="Doe")

        response = await client.post(f"{BASE}/approve", json={"waitlistId": waitlist_id}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["expiresInMinutes"] == 15
        assert data["maxUses"] == 3

        entries = (await client.get(f"{BASE}/list?status=approved", headers=admin_headers)).json()["entries"]
        assert entries[0]["inviteId"] == data["inviteId"]

        invites = (await client.get("/api/magic-link/admin/invites/list", headers=admin_headers)).json()["invites"]
        assert invites[0]["purpose"] == "waitlist_approval"

        slug, token = data["magicLink"].split("/accept/")[1].split("#t=")
        accept = await client.post("/api/magic-link/auth/accept", json={"slug": slug, "token": token})
        assert accept.status_code == 200

    @pytest.mark.asyncio
    async def test_reject_after_approve_conflicts(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        waitlist_id = await _join(client, "jane@example.com")
        await client.post(f"{BASE}/approve", json={"waitlistId": waitlist_id}, headers=admin_headers)

        response = await client.post(f"{BASE}/reject", json={"waitlistId": waitlist_id}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_WAITLIST_TRANSITION"

    @pytest.mark.asyncio
    async def test_approve_after_reject_issues_no_invite(
        self, client: AsyncClient, admin_headers: dict[str, str]
    ) -> None:
        waitlist_id = await _join(client, "jane@example.com")
        await client.post(f"{BASE}/reject", json={"waitlistId": waitlist_id}, headers=admin_headers)

        response = await client.post(f"{BASE}/approve", json={"waitlistId": waitlist_id}, headers=admin_headers)

        assert response.status_code == 409
        invites = (await client.get("/api/magic-link/admin/invites/list", headers=admin_headers)).json()["invites"]
        assert invites == []

    @pytest.mark.asyncio
    async def test_unknown_entry_is_404(self, client: AsyncClient, admin_headers: dict[str, str]) -> None:
        response = await client.post(
            f"{BASE}/approve",
            json={"waitlistId": "00000000-0000-0000-0000-000000000000"},
            headers=admin_headers,
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_failed_approval_revokes_issued_invite(
        self,
        client: AsyncClient,
        admin_headers: dict[str, str],
        container: ServiceContainer,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        waitlist_id = await _join(client, "jane@example.com")

        async def lost_race(entry_id: UUID, invite_id: UUID) -> None:
            raise InvalidWaitlistTransitionError(str(entry_id), "rejected", "approved")

        monkeypatch.setattr(container.waitlist_service, "approve_entry", lost_race)

        response = await client.post(f"{BASE}/approve", json={"waitlistId": waitlist_id}, headers=admin_headers)

        assert response.status_code == 409
        invites = (await client.get("/api/magic-link/admin/invites/list", headers=admin_headers)).json()["invites"]
        assert len(invites) == 1
        assert invites[0]["purpose"] == "waitlist_approval"
        assert invites[0]["status"] == "revoked"
