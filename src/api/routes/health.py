"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies.auth import get_container
from core.config import settings
from infrastructure.container import ServiceContainer
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

SERVICE_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    smtp_configured: bool | None = None
    rate_limit_storage: str | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """Liveness check. Does not touch the database."""
    return HealthResponse(
        status="healthy",
        version=SERVICE_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
    container: ServiceContainer = Depends(get_container),
) -> HealthResponse:
    """Readiness check: database round-trip plus mail and limiter state."""
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {type(e).__name__}"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=SERVICE_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        smtp_configured=container.mailer.is_configured,
        rate_limit_storage="healthy" if container.rate_limiter.healthy() else "unhealthy",
    )
