"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

# Configure the app for tests before any application module is imported
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["APP_URL"] = "http://test"
os.environ["APP_ENV"] = "test"
os.environ["TOKEN_PEPPER"] = "test-pepper"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.rate_limit import RateLimiter
from domain.entities.identity import Organization, Role, User
from infrastructure.auth.session_codec import SessionCodec
from infrastructure.container import ServiceContainer
from infrastructure.database.models import Base, OnboardingTypeModel
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.email.mailer import Mailer

TEST_ORIGIN = "http://test"


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


@pytest.fixture(scope="session")
def rsa_keys() -> tuple[str, str]:
    """PEM-encoded (private, public) RSA key pair for session signing."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture
def session_codec(rsa_keys: tuple[str, str]) -> SessionCodec:
    private_pem, public_pem = rsa_keys
    return SessionCodec(private_key=private_pem, public_key=public_pem, expiry_hours=24)


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine so concurrent sessions see each other's writes."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the "Magic Link" onboarding type seeded."""
    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        session.add(OnboardingTypeModel(name="Magic Link"))
        await session.commit()
    return factory


@pytest.fixture
def uow_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], SQLAlchemyUnitOfWork]:
    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def container(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    session_codec: SessionCodec,
) -> ServiceContainer:
    """Container wired to the test database, with rate limiting off and no SMTP."""
    return ServiceContainer(
        uow_factory,
        session_codec=session_codec,
        rate_limiter=RateLimiter(enabled=False),
        mailer=Mailer(username="", password=""),
    )


@pytest.fixture
async def client(container: ServiceContainer) -> AsyncGenerator[AsyncClient, None]:
    """Test client sending a trusted Origin header."""
    from main import create_app

    app = create_app(container)
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url=TEST_ORIGIN,
        headers={"Origin": TEST_ORIGIN},
    ) as c:
        yield c


async def create_user(
    uow_factory: Callable[[], SQLAlchemyUnitOfWork],
    email: str,
    role: Role,
) -> User:
    """Insert an organization and a user directly."""
    async with uow_factory() as uow:
        org = await uow.organizations.create(Organization(name=f"{email}'s Workspace", slug=email.replace("@", "-")))
        user = await uow.users.create(User(email=email, org_id=org.id, role_id=role, display_name="Test U."))
        await uow.commit()
    return user


def session_cookie(codec: SessionCodec, user: User) -> str:
    token = codec.create_session_token(
        ip="127.0.0.1",
        user_agent="pytest",
        org_id=user.org_id,
        user_id=user.id,
        role_id=int(user.role_id),
        display_name=user.display_name,
    )
    return f"app_session={token}"


@pytest.fixture
async def admin_user(uow_factory: Callable[[], SQLAlchemyUnitOfWork]) -> User:
    return await create_user(uow_factory, "admin@example.com", Role.ADMIN)


@pytest.fixture
async def regular_user(uow_factory: Callable[[], SQLAlchemyUnitOfWork]) -> User:
    return await create_user(uow_factory, "member@example.com", Role.USER)


@pytest.fixture
def admin_headers(session_codec: SessionCodec, admin_user: User) -> dict[str, str]:
    """Cookie header carrying an admin session."""
    return {"Cookie": session_cookie(session_codec, admin_user)}


@pytest.fixture
def user_headers(session_codec: SessionCodec, regular_user: User) -> dict[str, str]:
    """Cookie header carrying a non-admin session."""
    return {"Cookie": session_cookie(session_codec, regular_user)}
