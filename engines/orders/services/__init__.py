"""
Backoffice Orders Engine - Application Service
================================================
The order status state machine.

A status change is one command. When it moves an order into
Processing, the handler issues one SALE stock move per line item
through the same bus, so "deduct stock + append movements + append
history" happens inside one critical section.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from core.commands.base import Command
from core.commands.bus import CommandBus, CommandBusError, CommandResult
from core.errors import NotFoundError
from core.events.event import DomainEvent
from core.primitives.inventory import MovementType, Product, StockMovement
from core.primitives.order import Order, OrderStatus, StatusLog
from core.time.clock import Clock, get_default_clock
from engines.inventory.commands import StockMoveRequest
from engines.inventory.policies import OversellPolicy
from engines.orders.commands import (
    ORDERS_COMMAND_TYPES,
    ORDERS_ORDER_SET_STATUS_REQUEST,
    SetOrderStatusRequest,
)
from engines.orders.events import (
    ORDERS_ORDER_STATUS_CHANGED_V1,
    build_status_changed_payload,
)
from engines.orders.policies import (
    FulfillmentStockPolicy,
    OrderExistsPolicy,
    TransitionGuardPolicy,
    TransitionPolicy,
    enters_fulfillment,
    permit_any_transition,
)

logger = logging.getLogger("backoffice.orders")

ProductLookup = Callable[[str], Optional[Product]]


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class OrderStore:
    """In-memory orders keyed by order_id, in load order."""

    def __init__(self, orders: Iterable[Order] = ()):
        self._orders: Dict[str, Order] = {}
        self._event_count = 0
        for order in orders:
            self.load(order)

    def load(self, order: Order) -> None:
        if order.order_id in self._orders:
            raise ValueError(f"Order {order.order_id} already loaded.")
        self._orders[order.order_id] = order

    def apply(self, event_type: str, payload: dict) -> None:
        self._event_count += 1

        if event_type.startswith("orders.order.status_changed"):
            order = self._orders[payload["order_id"]]
            new_status = OrderStatus(payload["new_status"])
            log = StatusLog(
                status=new_status,
                updated_at=payload["updated_at"],
                updated_by=payload["updated_by"],
                note=payload.get("reason"),
            )
            reason = payload.get("reason")
            self._orders[order.order_id] = replace(
                order,
                status=new_status,
                status_history=order.status_history + (log,),
                return_reason=reason if reason is not None else order.return_reason,
            )

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._orders.get(order_id)

    def list_orders(self) -> List[Order]:
        return list(self._orders.values())

    @property
    def event_count(self) -> int:
        return self._event_count


# ══════════════════════════════════════════════════════════════
# EXECUTION RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatusChangeResult:
    event_type: str
    order: Order
    status_log: StatusLog
    sale_movements: Tuple[StockMovement, ...]

    @property
    def deducted(self) -> bool:
        return bool(self.sale_movements)


# ══════════════════════════════════════════════════════════════
# COMMAND HANDLER
# ══════════════════════════════════════════════════════════════

class _OrdersCommandHandler:
    def __init__(self, service: "OrderService"):
        self._service = service

    def execute(self, command: Command) -> Any:
        return self._service._execute_command(command)


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE
# ══════════════════════════════════════════════════════════════

class OrderService:
    """
    Orders Engine application service.

    Policies, in order:
        1. order exists            (NOT_FOUND)
        2. transition hook         (TRANSITION_NOT_ALLOWED)
        3. fulfillment stock check (INSUFFICIENT_STOCK, REJECT policy only)

    Deduction happens when the new status is Processing and the
    current one is not. Leaving Processing and coming back deducts
    again.
    """

    def __init__(
        self,
        *,
        command_bus: CommandBus,
        product_lookup: ProductLookup,
        store: Optional[OrderStore] = None,
        clock: Optional[Clock] = None,
        transition_policy: TransitionPolicy = permit_any_transition,
        oversell_policy: OversellPolicy = OversellPolicy.CLAMP_TO_ZERO,
        admin_actor: str = "Admin",
        system_actor: str = "system",
    ):
        self._command_bus = command_bus
        self._product_lookup = product_lookup
        self._store = store if store is not None else OrderStore()
        self._clock = clock
        self._transition_policy = transition_policy
        self._oversell_policy = OversellPolicy.parse(oversell_policy)
        self._admin_actor = admin_actor
        self._system_actor = system_actor

        self._register_policies()
        self._register_handlers()

    def _register_handlers(self) -> None:
        handler = _OrdersCommandHandler(self)
        for command_type in sorted(ORDERS_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def _register_policies(self) -> None:
        dispatcher = self._command_bus.dispatcher
        scope = {ORDERS_ORDER_SET_STATUS_REQUEST}
        lookup = self._store.get_order
        dispatcher.register_policy(OrderExistsPolicy(lookup), command_types=scope)
        dispatcher.register_policy(
            TransitionGuardPolicy(lookup, self._transition_policy),
            command_types=scope,
        )
        dispatcher.register_policy(
            FulfillmentStockPolicy(lookup, self._product_lookup, self._oversell_policy),
            command_types=scope,
        )

    @property
    def store(self) -> OrderStore:
        return self._store

    def _now(self) -> datetime:
        return (self._clock or get_default_clock()).now_utc()

    # ══════════════════════════════════════════════════════════
    # COMMAND ENTRY POINT
    # ══════════════════════════════════════════════════════════

    def set_status(
        self,
        order_id: str,
        new_status: Any,
        reason: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> CommandResult:
        """
        Move an order to new_status.

        Raises ValidationError for a status outside OrderStatus,
        before any command is built. An unknown order_id is a
        REJECTED result, not an exception.
        """
        request = SetOrderStatusRequest(
            order_id=order_id,
            new_status=OrderStatus.parse(new_status),
            reason=reason,
        )
        command = request.to_command(
            actor_id=actor or self._admin_actor,
            command_id=uuid.uuid4(),
            correlation_id=uuid.uuid4(),
            issued_at=self._now(),
        )
        return self._command_bus.handle(command)

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def get_order(self, order_id: str) -> Optional[Order]:
        with self._command_bus.critical_section():
            return self._store.get_order(order_id)

    def list_orders(self) -> List[Order]:
        with self._command_bus.critical_section():
            return self._store.list_orders()

    def find_order_by_id(self, scanned: str) -> Order:
        """
        Resolve a decoded QR payload to an order.

        Raises NotFoundError carrying the scanned code.
        """
        code = (scanned or "").strip()
        order = self.get_order(code) if code else None
        if order is None:
            raise NotFoundError("Order", code or scanned or "")
        return order

    # ══════════════════════════════════════════════════════════
    # EXECUTION (inside the bus critical section)
    # ══════════════════════════════════════════════════════════

    def _execute_command(self, command: Command) -> StatusChangeResult:
        if command.command_type != ORDERS_ORDER_SET_STATUS_REQUEST:
            raise ValueError(
                f"Unsupported orders command type: {command.command_type}"
            )

        order = self._store.get_order(command.payload["order_id"])
        new_status = OrderStatus(command.payload["new_status"])

        sale_movements: List[StockMovement] = []
        if enters_fulfillment(order.status, new_status):
            sale_movements = self._deduct_for(order, command)

        payload = build_status_changed_payload(
            command,
            previous_status=order.status,
            updated_at=command.issued_at,
            sale_movement_ids=[m.movement_id for m in sale_movements],
        )
        self._store.apply(ORDERS_ORDER_STATUS_CHANGED_V1, payload)
        updated = self._store.get_order(order.order_id)

        logger.info(
            f"Order {order.order_id}: {order.status.value} -> "
            f"{new_status.value} by {command.actor_id}"
            + (f" ({len(sale_movements)} sale movement(s))" if sale_movements else "")
        )

        self._command_bus.publish(DomainEvent(
            event_type=ORDERS_ORDER_STATUS_CHANGED_V1,
            payload=payload,
            occurred_at=command.issued_at,
            actor_id=command.actor_id,
            correlation_id=command.correlation_id,
            causation_id=command.command_id,
        ))

        return StatusChangeResult(
            event_type=ORDERS_ORDER_STATUS_CHANGED_V1,
            order=updated,
            status_log=updated.last_status_change,
            sale_movements=tuple(sale_movements),
        )

    def _deduct_for(self, order: Order, command: Command) -> List[StockMovement]:
        movements: List[StockMovement] = []
        for item in order.items:
            if self._product_lookup(item.product_id) is None:
                logger.warning(
                    f"Order {order.order_id}: line {item.product_id} is not in "
                    f"the catalog, no stock deducted for it"
                )
                continue

            request = StockMoveRequest(
                product_id=item.product_id,
                movement_type=MovementType.SALE,
                quantity=-item.quantity,
                note=f"export for order {order.order_id}",
            )
            result = self._command_bus.handle(request.to_command(
                actor_id=self._system_actor,
                command_id=uuid.uuid4(),
                correlation_id=command.correlation_id,
                issued_at=command.issued_at,
            ))
            if not result.is_accepted:
                # The fulfillment stock check runs before any line is deducted.
                raise CommandBusError(
                    f"Sale deduction for {order.order_id}/{item.product_id} "
                    f"rejected mid-fulfillment: {result.reason.code}"
                )
            movements.append(result.execution_result.movement)
        return movements
