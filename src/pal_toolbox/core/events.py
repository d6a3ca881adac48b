"""EventBus — decoupled Observer for progress, status, and error events."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)

# Type alias for event handler callbacks.
EventHandler = Any  # Callable[..., None]


class EventBus:
    """Simple publish/subscribe event bus for decoupled communication.

    Tools emit events (``progress``, ``log``, ``completed``) through this
    bus and the CLI subscribes to them.  Batch workers emit from several
    threads, so handler calls are serialised.
    """

    def __init__(self) -> None:
        """Initialise an empty event bus."""
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(self, event: str, handler: EventHandler) -> None:
        """Register a handler for a given event type.

        Args:
            event: The event name to subscribe to (e.g. ``"progress"``).
            handler: A callable that will be invoked when the event fires.
        """
        with self._lock:
            self._handlers[event].append(handler)

    def unsubscribe(self, event: str, handler: EventHandler) -> None:
        """Remove a previously registered handler.

        Args:
            event: The event name.
            handler: The handler to remove.
        """
        with self._lock:
            try:
                self._handlers[event].remove(handler)
            except ValueError:
                logger.warning("Handler %r was not subscribed to event %r", handler, event)

    def emit(self, event: str, **kwargs: Any) -> None:
        """Fire an event, calling all subscribed handlers.

        A handler that raises is logged and skipped; the remaining handlers
        still run.

        Args:
            event: The event name to fire.
            **kwargs: Arbitrary data passed to each handler.
        """
        with self._lock:
            handlers = list(self._handlers.get(event, []))
            for handler in handlers:
                try:
                    handler(**kwargs)
                except Exception:
                    logger.exception("Error in handler %r for event %r", handler, event)
