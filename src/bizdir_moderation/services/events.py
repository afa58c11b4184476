"""In-process event dispatch for moderation verdicts."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any, Protocol

logger = logging.getLogger(__name__)

CONTENT_QUEUED = "content_queued"
CONTENT_MODERATED = "content_moderated"

EventHandler = Callable[[dict[str, Any]], None]


class EventSink(Protocol):
    """Anything that accepts fire-and-forget events."""

    def emit(self, event_name: str, payload: dict[str, Any]) -> None: ...


class EventDispatcher:
    """Fan out events to subscribers; a failing subscriber never reaches the emitter."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        self._handlers[event_name].append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        handlers = list(self._handlers.get(event_name, ()))
        logger.debug("Emitting %s to %d subscriber(s)", event_name, len(handlers))
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.error("Subscriber for %s failed", event_name, exc_info=True)
