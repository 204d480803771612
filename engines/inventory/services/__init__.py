"""
Backoffice Inventory Engine - Application Service
===================================================
Orchestrates inventory commands → events → store.

The InventoryStore is the catalog plus every product's ledger.
Its only mutation path is apply(); the InventoryService is the only
caller, and only from inside the command bus critical section.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.commands.base import Command
from core.commands.bus import CommandBus, CommandBusError, CommandResult
from core.errors import NotFoundError, ValidationError
from core.events.event import DomainEvent
from core.primitives.inventory import MovementType, Product, StockMovement
from core.time.clock import Clock, get_default_clock
from engines.inventory.commands import (
    INVENTORY_COMMAND_TYPES,
    INVENTORY_STOCK_IMPORT_BATCH_REQUEST,
    INVENTORY_STOCK_MOVE_REQUEST,
    ImportBatchRequest,
    StockMoveRequest,
)
from engines.inventory.events import (
    INVENTORY_STOCK_BATCH_IMPORTED_V1,
    INVENTORY_STOCK_MOVED_V1,
    build_batch_imported_payload,
    build_stock_moved_payload,
    movement_id_for,
)
from engines.inventory.policies import (
    ImportBatchPreflightPolicy,
    InsufficientStockPolicy,
    OversellPolicy,
    ProductExistsPolicy,
)

logger = logging.getLogger("backoffice.inventory")


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class InventoryStore:
    """
    In-memory catalog keyed by product_id, in catalog order.

    Also keeps a journal of every movement in append order so the
    global movement feed does not have to re-walk each ledger.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: Dict[str, Product] = {}
        self._journal: List[StockMovement] = []
        self._event_count = 0
        for product in products:
            self.load(product)

    def load(self, product: Product) -> None:
        """Seed a product with its existing ledger. Startup only."""
        if product.product_id in self._products:
            raise ValueError(f"Product {product.product_id} already loaded.")
        self._products[product.product_id] = product
        self._journal.extend(product.movements)

    def apply(self, event_type: str, payload: dict) -> None:
        self._event_count += 1

        if event_type.startswith("inventory.stock.moved"):
            product = self.require_product(payload["product_id"])
            movement = StockMovement(
                movement_id=payload["movement_id"],
                product_id=product.product_id,
                movement_type=MovementType(payload["movement_type"]),
                quantity=payload["quantity"],
                before=payload["before"],
                after=payload["after"],
                note=payload["note"],
                created_at=payload["created_at"],
                user=payload["user"],
                requested_quantity=payload["requested_quantity"],
            )
            if movement.before != product.stock:
                raise ValueError(
                    f"Movement {movement.movement_id} starts at {movement.before} "
                    f"but {product.product_id} holds {product.stock}."
                )
            self._products[product.product_id] = replace(
                product,
                stock=movement.after,
                status=None,
                last_updated=movement.created_at,
                movements=product.movements + (movement,),
            )
            self._journal.append(movement)

    # ── Queries ───────────────────────────────────────────────

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._products.get(product_id)

    def require_product(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def list_products(self) -> List[Product]:
        return list(self._products.values())

    def product_ids(self) -> List[str]:
        return list(self._products.keys())

    def get_movements(self, product_id: Optional[str] = None) -> List[StockMovement]:
        """
        One product's ledger in append order, or every movement
        newest first (ties: later appended first) when product_id
        is omitted.
        """
        if product_id is not None:
            return list(self.require_product(product_id).movements)
        return sorted(
            reversed(self._journal),
            key=lambda m: m.created_at,
            reverse=True,
        )

    @property
    def event_count(self) -> int:
        return self._event_count


# ══════════════════════════════════════════════════════════════
# EXECUTION RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockMovementResult:
    event_type: str
    product: Product
    movement: StockMovement


@dataclass(frozen=True)
class ImportBatchResult:
    event_type: str
    products: Tuple[Product, ...]
    movements: Tuple[StockMovement, ...]


# ══════════════════════════════════════════════════════════════
# COMMAND HANDLER
# ══════════════════════════════════════════════════════════════

class _InventoryCommandHandler:
    def __init__(self, service: "InventoryService"):
        self._service = service

    def execute(self, command: Command) -> Any:
        return self._service._execute_command(command)


# ══════════════════════════════════════════════════════════════
# APPLICATION SERVICE (stock-movement ledger engine)
# ══════════════════════════════════════════════════════════════

class InventoryService:
    """
    Inventory Engine application service.

    Every stock change is one StockMovement, computed here:
        before = product.stock
        after  = oversell_policy.resolve(before, delta)

    Unknown products produce a REJECTED result (NOT_FOUND), never
    an exception.
    """

    def __init__(
        self,
        *,
        command_bus: CommandBus,
        store: Optional[InventoryStore] = None,
        clock: Optional[Clock] = None,
        oversell_policy: OversellPolicy = OversellPolicy.CLAMP_TO_ZERO,
        admin_actor: str = "Admin",
    ):
        self._command_bus = command_bus
        self._store = store if store is not None else InventoryStore()
        self._clock = clock
        self._oversell_policy = OversellPolicy.parse(oversell_policy)
        self._admin_actor = admin_actor

        self._register_policies()
        self._register_handlers()

    def _register_handlers(self) -> None:
        handler = _InventoryCommandHandler(self)
        for command_type in sorted(INVENTORY_COMMAND_TYPES):
            self._command_bus.register_handler(command_type, handler)

    def _register_policies(self) -> None:
        dispatcher = self._command_bus.dispatcher
        lookup = self._store.get_product
        dispatcher.register_policy(
            ProductExistsPolicy(lookup),
            command_types={INVENTORY_STOCK_MOVE_REQUEST},
        )
        dispatcher.register_policy(
            InsufficientStockPolicy(lookup, self._oversell_policy),
            command_types={INVENTORY_STOCK_MOVE_REQUEST},
        )
        dispatcher.register_policy(
            ImportBatchPreflightPolicy(lookup),
            command_types={INVENTORY_STOCK_IMPORT_BATCH_REQUEST},
        )

    @property
    def store(self) -> InventoryStore:
        return self._store

    @property
    def oversell_policy(self) -> OversellPolicy:
        return self._oversell_policy

    def _now(self) -> datetime:
        return (self._clock or get_default_clock()).now_utc()

    # ══════════════════════════════════════════════════════════
    # COMMAND ENTRY POINTS
    # ══════════════════════════════════════════════════════════

    def submit_move(
        self,
        request: StockMoveRequest,
        *,
        actor_id: str,
        correlation_id: Optional[uuid.UUID] = None,
    ) -> CommandResult:
        """Build the canonical command for a move and run it through the bus."""
        command = request.to_command(
            actor_id=actor_id,
            command_id=uuid.uuid4(),
            correlation_id=correlation_id or uuid.uuid4(),
            issued_at=self._now(),
        )
        return self._command_bus.handle(command)

    def apply_movement(
        self,
        product_id: str,
        movement_type: MovementType,
        quantity_delta: int,
        note: str = "",
        user: Optional[str] = None,
    ) -> CommandResult:
        request = StockMoveRequest(
            product_id=product_id,
            movement_type=movement_type,
            quantity=quantity_delta,
            note=note,
        )
        return self.submit_move(request, actor_id=user or self._admin_actor)

    def apply_import_batch(
        self,
        items: Iterable[Any],
        note: str = "",
        user: Optional[str] = None,
    ) -> CommandResult:
        """
        Receive several products at once. Any unknown product id
        rejects the whole batch (UNKNOWN_PRODUCT_IN_BATCH) and nothing
        is applied.
        """
        request = ImportBatchRequest.from_items(items, note=note)
        command = request.to_command(
            actor_id=user or self._admin_actor,
            command_id=uuid.uuid4(),
            correlation_id=uuid.uuid4(),
            issued_at=self._now(),
        )
        return self._command_bus.handle(command)

    def record_return(
        self, product_id: str, quantity: int, note: str = "", user: Optional[str] = None,
    ) -> CommandResult:
        """Goods back from a customer."""
        _require_positive(quantity, "Return")
        return self.apply_movement(product_id, MovementType.RETURN, quantity, note, user)

    def record_export(
        self, product_id: str, quantity: int, note: str = "", user: Optional[str] = None,
    ) -> CommandResult:
        """Goods taken out of stock for a non-sale reason."""
        _require_positive(quantity, "Export")
        return self.apply_movement(product_id, MovementType.EXPORT, -quantity, note, user)

    def record_audit(
        self, product_id: str, counted: int, note: str = "", user: Optional[str] = None,
    ) -> CommandResult:
        """Set stock to a physical count; the movement carries the difference."""
        if not isinstance(counted, int) or isinstance(counted, bool) or counted < 0:
            raise ValidationError(f"Counted stock must be a non-negative integer, got {counted!r}.")
        with self._command_bus.critical_section():
            product = self._store.get_product(product_id)
            delta = counted - product.stock if product is not None else 0
            return self.apply_movement(product_id, MovementType.AUDIT, delta, note, user)

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def get_product(self, product_id: str) -> Optional[Product]:
        with self._command_bus.critical_section():
            return self._store.get_product(product_id)

    def require_product(self, product_id: str) -> Product:
        with self._command_bus.critical_section():
            return self._store.require_product(product_id)

    def list_products(self) -> List[Product]:
        with self._command_bus.critical_section():
            return self._store.list_products()

    def get_movements(self, product_id: Optional[str] = None) -> List[StockMovement]:
        with self._command_bus.critical_section():
            return self._store.get_movements(product_id)

    # ══════════════════════════════════════════════════════════
    # EXECUTION (inside the bus critical section)
    # ══════════════════════════════════════════════════════════

    def _execute_command(self, command: Command) -> Any:
        if command.command_type == INVENTORY_STOCK_MOVE_REQUEST:
            return self._execute_move(command)
        if command.command_type == INVENTORY_STOCK_IMPORT_BATCH_REQUEST:
            return self._execute_import_batch(command)
        raise ValueError(
            f"Unsupported inventory command type: {command.command_type}"
        )

    def _execute_move(self, command: Command) -> StockMovementResult:
        product = self._store.require_product(command.payload["product_id"])
        requested = command.payload["quantity"]
        before = product.stock
        after = self._oversell_policy.resolve(before, requested)

        payload = build_stock_moved_payload(
            command,
            movement_id=movement_id_for(
                MovementType(command.payload["movement_type"]),
                product.product_id,
                len(product.movements) + 1,
            ),
            before=before,
            after=after,
            created_at=command.issued_at,
        )
        self._store.apply(INVENTORY_STOCK_MOVED_V1, payload)
        updated = self._store.require_product(product.product_id)
        movement = updated.last_movement

        if movement.shortfall:
            logger.info(
                f"Oversell clamped on {product.product_id}: requested "
                f"{requested}, applied {movement.quantity} ({movement.movement_id})"
            )
        logger.info(
            f"{movement.movement_type.value} {product.product_id}: "
            f"{before} -> {after} by {movement.user}"
        )

        self._publish(command, INVENTORY_STOCK_MOVED_V1, payload)
        return StockMovementResult(
            event_type=INVENTORY_STOCK_MOVED_V1,
            product=updated,
            movement=movement,
        )

    def _execute_import_batch(self, command: Command) -> ImportBatchResult:
        note = command.payload.get("note", "")
        movements: List[StockMovement] = []

        for line in command.payload["lines"]:
            request = StockMoveRequest(
                product_id=line["product_id"],
                movement_type=MovementType.IMPORT,
                quantity=line["quantity"],
                note=note,
            )
            result = self._command_bus.handle(request.to_command(
                actor_id=command.actor_id,
                command_id=uuid.uuid4(),
                correlation_id=command.correlation_id,
                issued_at=command.issued_at,
            ))
            if not result.is_accepted:
                # Preflight guarantees every product exists and imports only add.
                raise CommandBusError(
                    f"Import line for {line['product_id']} rejected after preflight: "
                    f"{result.reason.code}"
                )
            movements.append(result.execution_result.movement)

        touched: Dict[str, Product] = {}
        for movement in movements:
            touched[movement.product_id] = self._store.require_product(movement.product_id)

        payload = build_batch_imported_payload(
            command, [m.movement_id for m in movements],
        )
        self._publish(command, INVENTORY_STOCK_BATCH_IMPORTED_V1, payload)
        logger.info(
            f"Import batch applied: {len(movements)} line(s), "
            f"{len(touched)} product(s) by {command.actor_id}"
        )
        return ImportBatchResult(
            event_type=INVENTORY_STOCK_BATCH_IMPORTED_V1,
            products=tuple(touched.values()),
            movements=tuple(movements),
        )

    def _publish(self, command: Command, event_type: str, payload: dict) -> None:
        self._command_bus.publish(DomainEvent(
            event_type=event_type,
            payload=payload,
            occurred_at=command.issued_at,
            actor_id=command.actor_id,
            correlation_id=command.correlation_id,
            causation_id=command.command_id,
        ))


def _require_positive(quantity: int, label: str) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError(f"{label} quantity must be a positive integer, got {quantity!r}.")
