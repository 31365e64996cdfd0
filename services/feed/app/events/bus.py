"""In-process publish/subscribe bus.

Created in the app lifespan and reached through ``app.state.event_bus``.
Handlers are awaited in subscription order; a handler that raises is logged
and does not stop delivery to the others.
"""

import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)

Handler = Callable[[BaseModel], Awaitable[None]]


class EventBusClosedError(RuntimeError):
    pass


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Register ``handler``; returns a callable that unsubscribes it."""
        if self._closed:
            raise EventBusClosedError("Cannot subscribe to a closed event bus")
        self._handlers[event_type].append(handler)
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, ()))

    async def publish(self, event: BaseModel) -> int:
        """Deliver ``event`` to its subscribers; returns how many succeeded."""
        if self._closed:
            raise EventBusClosedError("Cannot publish on a closed event bus")
        event_type = getattr(event, "event_type", type(event).__name__)
        delivered = 0
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._handlers.get(event_type, ())):
            try:
                await handler(event)
                delivered += 1
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, event_type)
        return delivered

    def close(self) -> None:
        """Drop every subscription; later publishes raise EventBusClosedError."""
        self._handlers.clear()
        self._closed = True
