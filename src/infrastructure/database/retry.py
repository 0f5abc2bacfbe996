"""Retry helper for transient database connection failures."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from sqlalchemy.exc import InterfaceError, OperationalError

logger = structlog.get_logger()

T = TypeVar("T")

TRANSIENT_ERRORS: tuple[type[Exception], ...] = (OperationalError, InterfaceError)


async def retry_with_jitter(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.5,
    factor: float = 2.0,
    jitter: float = 0.25,
    retry_on: tuple[type[Exception], ...] = TRANSIENT_ERRORS,
) -> T:
    """Run ``operation`` with exponential backoff.

    Delay before attempt ``n + 1`` is ``base_delay * factor**(n - 1)`` scaled
    by a random factor in ``[1 - jitter, 1 + jitter]``. Only ``retry_on``
    exceptions are retried; the last one is re-raised.
    """
    attempt = 1
    while True:
        try:
            return await operation()
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error("db_retry_exhausted", attempts=attempt, error=str(e))
                raise
            delay = base_delay * factor ** (attempt - 1)
            delay *= random.uniform(1 - jitter, 1 + jitter)
            logger.warning(
                "db_transient_error",
                attempt=attempt,
                retry_in_seconds=round(delay, 3),
                error_type=type(e).__name__,
            )
            await asyncio.sleep(delay)
            attempt += 1
