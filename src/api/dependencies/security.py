"""Request security dependencies: origin check, rate limits, client context."""

from collections.abc import Awaitable, Callable
from urllib.parse import urlsplit

import structlog
from fastapi import Depends, Request, Response

from api.dependencies.auth import get_container
from core.exceptions import OriginRejectedError, RateLimitExceededError
from core.rate_limit import RateLimitCategory
from domain.entities.invite import RequestContext
from infrastructure.container import ServiceContainer

logger = structlog.get_logger()


def get_client_id(request: Request) -> str:
    """First ``X-Forwarded-For`` entry, then ``X-Real-IP``, then the peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=get_client_id(request),
        user_agent=request.headers.get("user-agent", ""),
    )


def _normalize_origin(value: str) -> str | None:
    parts = urlsplit(value)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}".lower()


def request_origin(request: Request) -> str | None:
    """``Origin`` header, else the origin of ``Referer``."""
    origin = request.headers.get("origin")
    if origin:
        return _normalize_origin(origin)
    referer = request.headers.get("referer")
    if referer:
        return _normalize_origin(referer)
    return None


async def verify_origin(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> None:
    """
    Reject cross-site mutating requests.

    Raises:
        OriginRejectedError: If the origin is missing or not trusted
    """
    origin = request_origin(request)
    trusted = {o for o in (_normalize_origin(t) for t in container.settings.trusted_origins_list) if o}

    if origin is None or origin not in trusted:
        logger.warning("origin_rejected", origin=origin, path=request.url.path)
        raise OriginRejectedError()


def rate_limit(category: RateLimitCategory) -> Callable[..., Awaitable[None]]:
    """Build a dependency that counts the request against ``category``."""

    async def check_rate_limit(
        request: Request,
        response: Response,
        container: ServiceContainer = Depends(get_container),
    ) -> None:
        client_id = get_client_id(request)
        result = container.rate_limiter.check(client_id, category)
        if not result.allowed:
            logger.warning("rate_limit_exceeded", category=category.value, client_id=client_id)
            raise RateLimitExceededError(category.value, result.headers)
        response.headers.update(result.headers)

    return check_rate_limit
