"""
Backoffice Event Bus - Subscriber Registry
============================================
Controls which listeners receive which events.

Rules:
- Event types must follow engine.domain.action format
- '*' subscribes to every event
- Multiple subscribers per event type allowed
- Duplicate handler for same event type forbidden
- In-memory only
- Thread-safe
"""

import logging
from threading import Lock
from typing import Callable

from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)

logger = logging.getLogger("backoffice.events")

ALL_EVENTS = "*"


class SubscriberRegistry:
    """
    In-memory registry of event listeners.

    Each entry maps an event_type (or '*') to a list of handlers,
    kept in subscription order.
    """

    def __init__(self):
        self._subscribers: dict[str, list[Callable]] = {}
        self._lock = Lock()

    @staticmethod
    def _validate_event_type_format(event_type: str) -> None:
        if event_type == ALL_EVENTS:
            return
        if not event_type or not isinstance(event_type, str):
            raise InvalidEventTypeFormat(event_type or "")

        parts = event_type.strip().split(".")
        if len(parts) < 3:
            raise InvalidEventTypeFormat(event_type)

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """
        Register a handler for an event type.

        Raises:
            InvalidEventTypeFormat:   Bad event type format
            DuplicateSubscriberError: Handler already registered
        """
        self._validate_event_type_format(event_type)

        if not callable(handler):
            raise EventBusError(
                f"Handler must be callable, got {type(handler)}."
            )

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            for existing in handlers:
                if existing == handler:
                    raise DuplicateSubscriberError(event_type, handler_name)
            handlers.append(handler)

        logger.debug(f"Subscriber registered: {handler_name} → {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        with self._lock:
            handlers = self._subscribers.get(event_type, [])
            for index, existing in enumerate(handlers):
                if existing == handler:
                    del handlers[index]
                    if not handlers:
                        del self._subscribers[event_type]
                    return True
        return False

    def get_subscribers(self, event_type: str) -> list[Callable]:
        """
        Handlers for an event type followed by '*' handlers.
        Returns empty list if none (not an error).
        """
        with self._lock:
            specific = list(self._subscribers.get(event_type, []))
            wildcard = list(self._subscribers.get(ALL_EVENTS, []))
        return specific + wildcard

    def has_subscribers(self, event_type: str) -> bool:
        return bool(self.get_subscribers(event_type))
