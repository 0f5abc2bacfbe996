"""In-process event bus for lifecycle events."""

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from domain.entities.events import Event, EventType

logger = structlog.get_logger()

EventHandler = Callable[[Any], Awaitable[None] | None]


class EventBus:
    """Best-effort fan-out of events to subscribers.

    Handlers may be sync or async. ``emit`` runs every handler for the event
    type concurrently; a failing handler is logged and never affects the
    emitter or the other handlers.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type``."""
        self._handlers[EventType(event_type)].append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: EventHandler | None = None) -> None:
        """Remove one handler, or every handler when ``handler`` is None."""
        event_type = EventType(event_type)
        if handler is None:
            self._handlers.pop(event_type, None)
            return
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: EventType | str) -> int:
        return len(self._handlers.get(EventType(event_type), []))

    def clear(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    async def emit(self, event: Event) -> None:
        """Deliver ``event`` to its subscribers."""
        handlers = list(self._handlers.get(event.type, []))
        if not handlers:
            return

        results = await asyncio.gather(
            *(self._invoke(handler, event) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                logger.error(
                    "event_handler_failed",
                    event_type=event.type.value,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(result),
                    error_type=type(result).__name__,
                )

    @staticmethod
    async def _invoke(handler: EventHandler, event: Event) -> None:
        result = handler(event)
        if inspect.isawaitable(result):
            await result
