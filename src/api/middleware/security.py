"""Security headers middleware."""

from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.config import settings

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# The waitlist form may be framed by the configured embed origins
EMBEDDABLE_PATH_PREFIX = "/api/magic-link/waitlist"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach baseline security headers to every response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)

        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)

        embed_origins = settings.allowed_embed_origins.replace(",", " ").split()
        if settings.embed_enabled and embed_origins and request.url.path.startswith(EMBEDDABLE_PATH_PREFIX):
            del response.headers["X-Frame-Options"]
            response.headers["Content-Security-Policy"] = "frame-ancestors 'self' " + " ".join(embed_origins)

        if settings.is_production:
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )

        return response
