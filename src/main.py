"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import router as health_router
from api.v1 import router as magic_link_router
from core.config import settings
from core.logging import setup_logging
from infrastructure.container import ServiceContainer
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


def build_default_container() -> ServiceContainer:
    """Container backed by the configured database."""

    def uow_factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return ServiceContainer(uow_factory)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    container: ServiceContainer = app.state.container
    container.start()
    try:
        yield
    finally:
        await container.shutdown()


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Passwordless Magic-Link Authentication\n\n"
            "Single-use invite links, a waitlist with admin approval, and "
            "stateless signed sessions.\n\n"
            "### Sessions\n"
            "Redeeming a link sets an HTTP-only session cookie. Admin endpoints "
            "require a session belonging to an admin.\n\n"
            "### Rate Limits\n"
            f"- Accept: {settings.rate_limit_auth_per_minute} requests/minute\n"
            f"- Waitlist join: {settings.rate_limit_waitlist_per_hour} requests/hour\n"
            f"- Admin create/resend: {settings.rate_limit_admin_per_minute} requests/minute"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {"name": "health", "description": "Health check endpoints"},
            {"name": "auth", "description": "Magic-link redemption and sessions"},
            {"name": "waitlist", "description": "Public waitlist signup"},
            {"name": "admin-invites", "description": "Invite management (admin only)"},
            {"name": "admin-waitlist", "description": "Waitlist review (admin only)"},
        ],
    )

    app.state.container = container or build_default_container()

    # Security & tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(magic_link_router, prefix="/api/magic-link")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
