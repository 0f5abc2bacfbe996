"""Integration tests for the public waitlist endpoint."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from core.config import settings
from core.rate_limit import RateLimitCategory, RateLimiter, default_rules
from infrastructure.container import ServiceContainer
from infrastructure.email.mailer import Mailer
from tests.conftest import TEST_ORIGIN

JOIN_URL = "/api/magic-link/waitlist/join"


@pytest.fixture
async def build_client(uow_factory, session_codec) -> AsyncGenerator:  # type: ignore[no-untyped-def]
    """Factory for clients over a customised container."""
    from main import create_app

    clients: list[AsyncClient] = []

    def _build(**overrides: object) -> AsyncClient:
        container = ServiceContainer(
            uow_factory,
            config=overrides.pop("config", settings),  # type: ignore[arg-type]
            session_codec=session_codec,
            rate_limiter=overrides.pop("rate_limiter", RateLimiter(enabled=False)),  # type: ignore[arg-type]
            mailer=Mailer(username="", password=""),
        )
        c = AsyncClient(
            transport=ASGITransport(app=create_app(container)),
            base_url=TEST_ORIGIN,
            headers={"Origin": TEST_ORIGIN},
        )
        clients.append(c)
        return c

    yield _build

    for c in clients:
        await c.aclose()


class TestJoinWaitlist:
    @pytest.mark.asyncio
    async def test_join_returns_id(self, client: AsyncClient) -> None:
        response = await client.post(
            JOIN_URL,
            json={
                "email": "Jane@Example.com",
                "firstName": "Jane",
                "organizationName": "Acme",
                "feedbackImportance": 8,
                "subscribeNewsletter": True,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert "waitlistId" in data

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, client: AsyncClient) -> None:
        first = await client.post(JOIN_URL, json={"email": "jane@example.com"})
        second = await client.post(JOIN_URL, json={"email": "JANE@example.com"})

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error"] == "Email already registered"

    @pytest.mark.parametrize(
        "payload",
        [
            {"email": "not-an-email"},
            {"email": "jane@example.com", "feedbackImportance": 11},
            {"firstName": "Jane"},
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_payload_is_400(self, client: AsyncClient, payload: dict[str, object]) -> None:
        response = await client.post(JOIN_URL, json=payload)

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    @pytest.mark.asyncio
    async def test_missing_origin_rejected(self, client: AsyncClient) -> None:
        response = await client.post(JOIN_URL, json={"email": "jane@example.com"}, headers={"Origin": ""})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_disabled_waitlist_is_503(self, build_client) -> None:  # type: ignore[no-untyped-def]
        c = build_client(config=settings.model_copy(update={"waitlist_enabled": False}))

        response = await c.post(JOIN_URL, json={"email": "jane@example.com"})

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_rate_limited_after_budget(self, build_client) -> None:  # type: ignore[no-untyped-def]
        limiter = RateLimiter(rules=default_rules(waitlist_per_hour=2))
        c = build_client(rate_limiter=limiter)

        responses = [
            await c.post(JOIN_URL, json={"email": f"user{i}@example.com"}) for i in range(3)
        ]

        assert [r.status_code for r in responses] == [200, 200, 429]
        assert responses[0].headers["x-ratelimit-limit"] == "2"
        assert responses[0].headers["x-ratelimit-remaining"] == "1"
        assert responses[2].headers["x-ratelimit-remaining"] == "0"
        assert "x-ratelimit-reset" in responses[2].headers
        assert limiter.rule_for(RateLimitCategory.WAITLIST).window_seconds == 3600
