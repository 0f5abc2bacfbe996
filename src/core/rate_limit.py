"""Fixed-window rate limiting on the ``limits`` in-memory backend.

Counters live in this process only. Behind a load balancer every instance
enforces its own budget, so the effective aggregate limit is
``limit * instance_count``. A shared ``limits`` storage (e.g. Redis) is
required for a cluster-wide limit and is not configured here.
"""

import math
import threading
import time
from dataclasses import dataclass, field
from enum import StrEnum

import structlog
from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

logger = structlog.get_logger()


class RateLimitCategory(StrEnum):
    """Endpoint groups with independent budgets."""

    WAITLIST = "waitlist"
    AUTH = "auth"
    API = "api"
    ADMIN = "admin"


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int


@dataclass
class RateLimitResult:
    """Outcome of a single ``RateLimiter.check`` call."""

    allowed: bool
    remaining: int
    reset_at: float
    headers: dict[str, str] = field(default_factory=dict)


def default_rules(
    waitlist_per_hour: int = 3,
    auth_per_minute: int = 5,
    api_per_minute: int = 30,
    admin_per_minute: int = 10,
) -> dict[RateLimitCategory, RateLimitRule]:
    """Build the per-category rule table."""
    return {
        RateLimitCategory.WAITLIST: RateLimitRule(waitlist_per_hour, 3600),
        RateLimitCategory.AUTH: RateLimitRule(auth_per_minute, 60),
        RateLimitCategory.API: RateLimitRule(api_per_minute, 60),
        RateLimitCategory.ADMIN: RateLimitRule(admin_per_minute, 60),
    }


class RateLimiter:
    """Fixed-window counters keyed by ``(category, client_id)``.

    Windows are absolute: the reset time is fixed by the first hit and does
    not slide. A denied call does not increment the counter. Elapsed windows
    are expired by the ``MemoryStorage`` itself.

    Lifecycle: construct -> ``check()`` -> ``destroy()``.
    """

    def __init__(
        self,
        rules: dict[RateLimitCategory, RateLimitRule] | None = None,
        enabled: bool = True,
    ) -> None:
        self._rules = rules or default_rules()
        self._items: dict[RateLimitCategory, RateLimitItem] = {
            category: RateLimitItemPerSecond(rule.limit, rule.window_seconds)
            for category, rule in self._rules.items()
        }
        self._enabled = enabled
        self._storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self._storage)
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def rule_for(self, category: RateLimitCategory | str) -> RateLimitRule:
        return self._rules[RateLimitCategory(category)]

    def check(self, client_id: str, category: RateLimitCategory | str) -> RateLimitResult:
        """Count one request for ``client_id`` in ``category``."""
        category = RateLimitCategory(category)
        rule = self._rules[category]

        if not self._enabled:
            reset_at = time.time() + rule.window_seconds
            return RateLimitResult(
                allowed=True,
                remaining=rule.limit,
                reset_at=reset_at,
                headers=self._headers(rule.limit, rule.limit, reset_at),
            )

        item = self._items[category]
        identifiers = (category.value, client_id)

        # test-then-hit is one critical section so denials never count
        with self._lock:
            allowed = self._strategy.test(item, *identifiers) and self._strategy.hit(item, *identifiers)
            reset_at, remaining = self._strategy.get_window_stats(item, *identifiers)

        if not allowed:
            logger.debug("rate_limit_denied", category=category.value, client_id=client_id)

        return RateLimitResult(
            allowed=allowed,
            remaining=remaining,
            reset_at=float(reset_at),
            headers=self._headers(rule.limit, remaining, reset_at),
        )

    def healthy(self) -> bool:
        """Whether the counter storage answers."""
        return bool(self._storage.check())

    def destroy(self) -> None:
        """Drop all counters."""
        with self._lock:
            self._storage.reset()

    @staticmethod
    def _headers(limit: int, remaining: int, reset_at: float) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(math.floor(reset_at)),
        }
