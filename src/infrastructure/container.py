"""Per-application service wiring.

One container owns the event bus, rate limiter, mailer, session codec and
services for an application instance. Nothing here is a module global, so
tests can build as many isolated containers as they need.
"""

from collections.abc import Callable

import structlog

from core.config import Settings, settings as default_settings
from core.rate_limit import RateLimiter, default_rules
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.auth_service import AuthService
from domain.services.event_bus import EventBus
from domain.services.invite_service import InviteService
from domain.services.onboarding_service import OnboardingService
from domain.services.waitlist_service import WaitlistService
from infrastructure.auth.session_codec import SessionCodec
from infrastructure.email.mailer import Mailer, register_mail_subscribers

logger = structlog.get_logger()


class ServiceContainer:
    """Lifecycle: construct -> ``start()`` -> use -> ``shutdown()``."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        config: Settings | None = None,
        session_codec: SessionCodec | None = None,
        rate_limiter: RateLimiter | None = None,
        mailer: Mailer | None = None,
    ) -> None:
        self.settings = config or default_settings
        self.uow_factory = uow_factory
        self.event_bus = EventBus()
        self.rate_limiter = rate_limiter or RateLimiter(
            rules=default_rules(
                waitlist_per_hour=self.settings.rate_limit_waitlist_per_hour,
                auth_per_minute=self.settings.rate_limit_auth_per_minute,
                api_per_minute=self.settings.rate_limit_api_per_minute,
                admin_per_minute=self.settings.rate_limit_admin_per_minute,
            ),
            enabled=self.settings.rate_limit_enabled,
        )
        self.session_codec = session_codec or SessionCodec(
            private_key=self.settings.jwt_private_key,
            public_key=self.settings.jwt_public_key,
            expiry_hours=self.settings.session_expiry_hours,
        )
        self.mailer = mailer or Mailer()

        self.invite_service = InviteService(
            uow_factory,
            event_bus=self.event_bus,
            pepper=self.settings.token_pepper,
            app_url=self.settings.app_url,
            default_expiry_minutes=self.settings.auth_link_expiry_minutes,
            default_max_uses=self.settings.default_invite_max_uses,
        )
        self.waitlist_service = WaitlistService(uow_factory, event_bus=self.event_bus)
        self.onboarding_service = OnboardingService(uow_factory, event_bus=self.event_bus)
        self.auth_service = AuthService(
            uow_factory,
            invite_service=self.invite_service,
            onboarding_service=self.onboarding_service,
            event_bus=self.event_bus,
        )

        register_mail_subscribers(self.event_bus, self.mailer)

    def start(self) -> None:
        """Mark the container live."""
        logger.info("service_container_started", rate_limit_enabled=self.rate_limiter.enabled)

    async def shutdown(self) -> None:
        """Stop background work and release per-instance state."""
        self.rate_limiter.destroy()
        await self.mailer.drain()
        self.event_bus.clear()
        logger.info("service_container_stopped")
