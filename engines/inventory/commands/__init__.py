"""
Backoffice Inventory Engine - Request Commands
================================================
Typed inventory requests that convert into canonical Command objects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Tuple, Union

from core.commands.base import Command
from core.errors import ValidationError
from core.primitives.inventory import MovementType


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_STOCK_MOVE_REQUEST = "inventory.stock.move.request"
INVENTORY_STOCK_IMPORT_BATCH_REQUEST = "inventory.stock.import_batch.request"

INVENTORY_COMMAND_TYPES = frozenset({
    INVENTORY_STOCK_MOVE_REQUEST,
    INVENTORY_STOCK_IMPORT_BATCH_REQUEST,
})


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockMoveRequest:
    """
    Request to append one movement to a product's ledger.

    quantity is the signed delta the caller wants applied. Whether a
    deduction past zero is clamped or rejected is decided later by
    the oversell policy, not here.
    """
    product_id: str
    movement_type: MovementType
    quantity: int
    note: str = ""

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if not isinstance(self.movement_type, MovementType):
            raise ValidationError("movement_type must be MovementType enum.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValidationError("quantity must be an integer delta.")

    def to_command(
        self,
        *,
        actor_id: str,
        command_id: uuid.UUID,
        correlation_id: uuid.UUID,
        issued_at: datetime,
    ) -> Command:
        return Command(
            command_id=command_id,
            command_type=INVENTORY_STOCK_MOVE_REQUEST,
            actor_id=actor_id,
            payload={
                "product_id": self.product_id,
                "movement_type": self.movement_type.value,
                "quantity": self.quantity,
                "note": self.note,
            },
            issued_at=issued_at,
            correlation_id=correlation_id,
            source_engine="inventory",
        )


@dataclass(frozen=True)
class ImportLine:
    product_id: str
    quantity: int

    def __post_init__(self):
        if not self.product_id:
            raise ValidationError("product_id must be non-empty.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) \
                or self.quantity <= 0:
            raise ValidationError(
                f"Import quantity for {self.product_id} must be a positive integer, "
                f"got {self.quantity!r}."
            )

    @classmethod
    def coerce(cls, item: Union["ImportLine", Mapping[str, Any]]) -> "ImportLine":
        """Accept an ImportLine or a {'productId'|'product_id', 'quantity'} mapping."""
        if isinstance(item, ImportLine):
            return item
        if isinstance(item, Mapping):
            product_id = item.get("product_id", item.get("productId"))
            return cls(product_id=product_id, quantity=item.get("quantity"))
        raise ValidationError(f"Cannot read import line from {type(item).__name__}.")


@dataclass(frozen=True)
class ImportBatchRequest:
    """
    Request to receive several products in one all-or-nothing step.

    An empty batch is valid and changes nothing.
    """
    lines: Tuple[ImportLine, ...]
    note: str = ""

    def __post_init__(self):
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))

    @classmethod
    def from_items(cls, items: Iterable[Any], note: str = "") -> "ImportBatchRequest":
        return cls(lines=tuple(ImportLine.coerce(item) for item in items), note=note)

    def to_command(
        self,
        *,
        actor_id: str,
        command_id: uuid.UUID,
        correlation_id: uuid.UUID,
        issued_at: datetime,
    ) -> Command:
        return Command(
            command_id=command_id,
            command_type=INVENTORY_STOCK_IMPORT_BATCH_REQUEST,
            actor_id=actor_id,
            payload={
                "lines": [
                    {"product_id": line.product_id, "quantity": line.quantity}
                    for line in self.lines
                ],
                "note": self.note,
            },
            issued_at=issued_at,
            correlation_id=correlation_id,
            source_engine="inventory",
        )
