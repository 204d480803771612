"""
Backoffice Event Bus - Tests
==============================
Listener registry and dispatch.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import pytest

from core.events import (
    ALL_EVENTS,
    DomainEvent,
    DuplicateSubscriberError,
    EventBusError,
    InvalidEventTypeFormat,
    SubscriberRegistry,
    dispatch,
)


NOW = datetime(2024, 5, 17, 9, 0, tzinfo=timezone.utc)


def _event(event_type: str = "inventory.stock.moved.v1", **payload) -> DomainEvent:
    return DomainEvent(
        event_type=event_type,
        payload=payload or {"product_id": "PROD-0001"},
        occurred_at=NOW,
        actor_id="Admin",
        correlation_id=uuid.uuid4(),
    )


class TestDomainEvent:
    def test_event_id_generated(self):
        assert _event().event_id != _event().event_id

    def test_bad_event_type(self):
        with pytest.raises(ValueError):
            _event(event_type="inventory.moved")

    def test_rejection_flag(self):
        assert _event("orders.order.set_status.rejected").is_rejection
        assert not _event().is_rejection

    def test_source_engine(self):
        assert _event("orders.order.status_changed.v1").source_engine == "orders"


class TestSubscriberRegistry:
    def test_subscribe_and_lookup(self):
        registry = SubscriberRegistry()
        handler = lambda event: None
        registry.subscribe("inventory.stock.moved.v1", handler)
        assert registry.get_subscribers("inventory.stock.moved.v1") == [handler]
        assert registry.get_subscribers("orders.order.status_changed.v1") == []

    def test_invalid_format(self):
        with pytest.raises(InvalidEventTypeFormat):
            SubscriberRegistry().subscribe("inventory", lambda event: None)

    def test_handler_must_be_callable(self):
        with pytest.raises(EventBusError):
            SubscriberRegistry().subscribe("inventory.stock.moved.v1", "nope")

    def test_duplicate_refused(self):
        registry = SubscriberRegistry()
        handler = lambda event: None
        registry.subscribe("inventory.stock.moved.v1", handler)
        with pytest.raises(DuplicateSubscriberError):
            registry.subscribe("inventory.stock.moved.v1", handler)

    def test_wildcard_runs_after_specific(self):
        registry = SubscriberRegistry()
        specific = lambda event: None
        everything = lambda event: None
        registry.subscribe(ALL_EVENTS, everything)
        registry.subscribe("inventory.stock.moved.v1", specific)
        assert registry.get_subscribers("inventory.stock.moved.v1") == [
            specific, everything,
        ]

    def test_unsubscribe(self):
        registry = SubscriberRegistry()
        handler = lambda event: None
        registry.subscribe("inventory.stock.moved.v1", handler)
        assert registry.unsubscribe("inventory.stock.moved.v1", handler) is True
        assert registry.unsubscribe("inventory.stock.moved.v1", handler) is False
        assert not registry.has_subscribers("inventory.stock.moved.v1")


class TestDispatch:
    def test_no_subscribers(self):
        result = dispatch(_event(), SubscriberRegistry())
        assert result["subscribers_notified"] == 0
        assert result["failures"] == []

    def test_all_handlers_called_in_order(self):
        registry = SubscriberRegistry()
        heard = []
        registry.subscribe("inventory.stock.moved.v1", lambda e: heard.append("a"))
        registry.subscribe("inventory.stock.moved.v1", lambda e: heard.append("b"))
        result = dispatch(_event(), registry)
        assert heard == ["a", "b"]
        assert result["subscribers_notified"] == 2

    def test_failing_listener_is_isolated(self, caplog):
        registry = SubscriberRegistry()
        heard = []

        def broken(event):
            raise RuntimeError("listener down")

        registry.subscribe("inventory.stock.moved.v1", broken)
        registry.subscribe("inventory.stock.moved.v1", heard.append)

        with caplog.at_level(logging.ERROR, logger="backoffice.events"):
            result = dispatch(_event(), registry)

        assert len(heard) == 1
        assert result["subscribers_failed"] == 1
        assert result["failures"][0]["error_type"] == "RuntimeError"
        assert "listener down" in caplog.text
