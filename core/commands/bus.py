"""
Backoffice Command Layer - Command Bus
========================================
High-level orchestration of the command lifecycle.

Flow:
    1. Enter the critical section (re-entrant lock)
    2. Dispatch command → get Outcome
    3. If ACCEPTED → call engine service handler → handler mutates
       its store and publishes its event
    4. If REJECTED → publish '<base>.rejected' to listeners

Everything between 1 and 3/4 is one indivisible step. A handler may
issue further commands through the same bus (an order entering
Processing issues its sale deductions); those join the outer step
because the lock is re-entrant.

Events published inside a step are queued and delivered in order
once the outermost step completes, so a listener never observes a
half-applied step. Events queued by a step that raised are dropped.

The CommandBus does NOT:
- Contain engine-specific logic
- Decide acceptance (the dispatcher does)
- Raise on rejection
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from core.commands.base import Command, derive_rejection_event_type
from core.commands.dispatcher import CommandDispatcher
from core.commands.outcomes import CommandOutcome
from core.events.dispatcher import dispatch
from core.events.event import DomainEvent
from core.events.registry import SubscriberRegistry

logger = logging.getLogger("backoffice.commands")


# ══════════════════════════════════════════════════════════════
# ENGINE SERVICE PROTOCOL
# ══════════════════════════════════════════════════════════════

class EngineServiceProtocol(Protocol):
    """
    Each engine registers a handler that knows how to execute an
    accepted command against its store. The return value becomes
    CommandResult.execution_result.
    """

    def execute(self, command: Command) -> Any:
        ...


# ══════════════════════════════════════════════════════════════
# COMMAND BUS ERRORS
# ══════════════════════════════════════════════════════════════

class CommandBusError(Exception):
    """Base error for command bus operations."""
    pass


class NoHandlerRegistered(CommandBusError):
    """No engine service handler registered for command type."""

    def __init__(self, command_type: str):
        self.command_type = command_type
        super().__init__(
            f"No engine service handler registered for "
            f"command type '{command_type}'."
        )


# ══════════════════════════════════════════════════════════════
# COMMAND BUS RESULT
# ══════════════════════════════════════════════════════════════

class CommandResult:
    """
    Result of CommandBus.handle(): wraps outcome + execution result.
    """

    def __init__(
        self,
        outcome: CommandOutcome,
        execution_result: Any = None,
    ):
        self.outcome = outcome
        self.execution_result = execution_result

    @property
    def is_accepted(self) -> bool:
        return self.outcome.is_accepted

    @property
    def is_rejected(self) -> bool:
        return self.outcome.is_rejected

    @property
    def reason(self):
        return self.outcome.reason

    def __repr__(self) -> str:
        code = self.outcome.reason.code if self.outcome.reason else None
        return f"CommandResult(status={self.outcome.status.value}, reason={code})"


# ══════════════════════════════════════════════════════════════
# COMMAND BUS
# ══════════════════════════════════════════════════════════════

class CommandBus:
    """
    Orchestration layer for command lifecycle.

    Usage:
        bus = CommandBus(dispatcher=dispatcher, registry=listeners)
        bus.register_handler("inventory.stock.move.request", inventory_service)
        result = bus.handle(command)
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        registry: Optional[SubscriberRegistry] = None,
    ):
        self._dispatcher = dispatcher
        self._registry = registry if registry is not None else SubscriberRegistry()
        self._handlers: Dict[str, Any] = {}
        self._lock = threading.RLock()
        # Guarded by _lock.
        self._depth = 0
        self._pending: List[DomainEvent] = []

    @property
    def dispatcher(self) -> CommandDispatcher:
        return self._dispatcher

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    @contextmanager
    def critical_section(self) -> Iterator[None]:
        """
        The single lock guarding every store behind this bus.

        Sections nest. Events published inside are delivered when the
        outermost section exits normally.
        """
        with self._lock:
            self._depth += 1
            completed = False
            try:
                yield
                completed = True
            finally:
                self._depth -= 1
                if self._depth == 0:
                    pending, self._pending = self._pending, []
                    if completed:
                        self._flush(pending)
                    elif pending:
                        logger.warning(
                            f"Dropped {len(pending)} queued event(s) "
                            f"from a failed step"
                        )

    def _flush(self, pending: List[DomainEvent]) -> None:
        for event in pending:
            dispatch(event, self._registry)

    # ══════════════════════════════════════════════════════════
    # HANDLER REGISTRATION
    # ══════════════════════════════════════════════════════════

    def register_handler(self, command_type: str, handler: Any) -> None:
        """
        Register engine service handler for a command type.

        Handler must implement EngineServiceProtocol (have .execute()).
        """
        if not command_type.endswith(".request"):
            raise ValueError(
                f"command_type '{command_type}' must end with '.request'."
            )

        if not hasattr(handler, "execute") or not callable(handler.execute):
            raise TypeError("Handler must have callable .execute() method.")

        self._handlers[command_type] = handler
        logger.debug(f"Handler registered: {command_type}")

    def has_handler(self, command_type: str) -> bool:
        return command_type in self._handlers

    # ══════════════════════════════════════════════════════════
    # HANDLE (main orchestration)
    # ══════════════════════════════════════════════════════════

    def handle(self, command: Command) -> CommandResult:
        """
        Full command lifecycle inside the critical section.

        Raises:
            NoHandlerRegistered: accepted command with nobody to run it.
        """
        with self.critical_section():
            outcome = self._dispatcher.dispatch(command)

            if outcome.is_accepted:
                return self._handle_accepted(command, outcome)
            return self._handle_rejected(command, outcome)

    def publish(self, event: DomainEvent) -> Optional[dict]:
        """
        Notify listeners. Never raises.

        Inside a critical section the event is queued and None is
        returned; otherwise it is dispatched now and the dispatch
        result returned.
        """
        with self._lock:
            if self._depth > 0:
                self._pending.append(event)
                return None
        return dispatch(event, self._registry)

    # ══════════════════════════════════════════════════════════
    # ACCEPTED PATH
    # ══════════════════════════════════════════════════════════

    def _handle_accepted(
        self, command: Command, outcome: CommandOutcome
    ) -> CommandResult:
        handler = self._handlers.get(command.command_type)
        if handler is None:
            raise NoHandlerRegistered(command.command_type)

        logger.info(
            f"Executing accepted command {command.command_id} "
            f"({command.command_type}) by {command.actor_id}"
        )

        execution_result = handler.execute(command)

        return CommandResult(
            outcome=outcome,
            execution_result=execution_result,
        )

    # ══════════════════════════════════════════════════════════
    # REJECTED PATH
    # ══════════════════════════════════════════════════════════

    def _handle_rejected(
        self, command: Command, outcome: CommandOutcome
    ) -> CommandResult:
        """
        Publish the rejection to listeners.

        inventory.stock.move.request → inventory.stock.move.rejected
        """
        rejection_event = DomainEvent(
            event_type=derive_rejection_event_type(command.command_type),
            payload={
                "command_id": str(command.command_id),
                "command_type": command.command_type,
                "rejection": outcome.reason.to_dict(),
                "original_payload": dict(command.payload),
            },
            occurred_at=outcome.occurred_at,
            actor_id=command.actor_id,
            correlation_id=command.correlation_id,
            causation_id=command.command_id,
        )
        self.publish(rejection_event)

        return CommandResult(outcome=outcome)
