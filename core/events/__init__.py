"""
Backoffice Event Bus - Public API
===================================
Stores change first. Listeners hear about it after.
"""

from core.events.dispatcher import dispatch
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
)
from core.events.event import DomainEvent
from core.events.registry import ALL_EVENTS, SubscriberRegistry

__all__ = [
    "ALL_EVENTS",
    "dispatch",
    "DomainEvent",
    "SubscriberRegistry",
    "EventBusError",
    "InvalidEventTypeFormat",
    "DuplicateSubscriberError",
]
