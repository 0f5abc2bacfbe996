"""Shared fixtures for unit tests."""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.services.event_bus import EventBus

FIXED_NOW = datetime(2025, 1, 15, 12, 0, 0)
PEPPER = "unit-test-pepper"


class FakeUnitOfWork:
    """Fake Unit of Work with all 5 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.invites = AsyncMock()
        self.waitlist = AsyncMock()
        self.users = AsyncMock()
        self.organizations = AsyncMock()
        self.onboarding_types = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


class RecordingBus(EventBus):
    """EventBus that also keeps every emitted event."""

    def __init__(self) -> None:
        super().__init__()
        self.emitted: list[Any] = []

    async def emit(self, event: Any) -> None:
        self.emitted.append(event)
        await super().emit(event)


async def passthrough(entity: Any) -> Any:
    """Side effect returning the entity handed to a repository."""
    return entity


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def org_id() -> UUID:
    """A random organization ID."""
    return uuid4()
