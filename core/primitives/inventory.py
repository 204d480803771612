"""
Backoffice Inventory Primitive - Products and Stock Movements
===============================================================
RULES (NON-NEGOTIABLE):
- Stock is a non-negative integer
- Every stock change is a StockMovement (no hidden mutations)
- A movement satisfies after == before + quantity
- Movements are append-only; a recorded movement never changes
- Product.status is derived from stock and min_stock, never set freely

This file contains NO store logic. See engines.inventory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class MovementType(Enum):
    """Why stock moved."""
    IMPORT = "IMPORT"   # Goods received into the warehouse
    EXPORT = "EXPORT"   # Goods taken out for a non-sale reason
    AUDIT = "AUDIT"     # Physical count correction
    SALE = "SALE"       # Deducted when an order enters fulfillment
    RETURN = "RETURN"   # Customer return back into stock


class StockStatus(Enum):
    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"


def derive_stock_status(stock: int, min_stock: int) -> StockStatus:
    """OutOfStock at zero, LowStock at or below the threshold, else InStock."""
    if stock == 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= min_stock:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


# ══════════════════════════════════════════════════════════════
# STOCK MOVEMENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StockMovement:
    """
    Single ledger entry for one product.

    Fields:
        movement_id:        Unique id (MOV-<TYPE>-<product_id>-<seq>)
        product_id:         Product this entry belongs to
        movement_type:      IMPORT | EXPORT | AUDIT | SALE | RETURN
        quantity:           Applied signed delta
        before / after:     Stock on either side of the entry
        note:               Free text ("export for order ORD-001", ...)
        created_at:         When the entry was appended
        user:               Who or what caused it
        requested_quantity: Delta the caller asked for. Differs from
                            quantity only when the oversell clamp
                            absorbed part of a deduction.
    """
    movement_id: str
    product_id: str
    movement_type: MovementType
    quantity: int
    before: int
    after: int
    note: str
    created_at: datetime
    user: str
    requested_quantity: Optional[int] = None

    def __post_init__(self):
        if not self.movement_id:
            raise ValueError("movement_id must be non-empty.")
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not isinstance(self.movement_type, MovementType):
            raise ValueError("movement_type must be MovementType enum.")
        if self.before < 0 or self.after < 0:
            raise ValueError(
                f"Stock cannot be negative (before={self.before}, after={self.after})."
            )
        if self.after != self.before + self.quantity:
            raise ValueError(
                f"Ledger entry {self.movement_id} is inconsistent: "
                f"{self.before} + {self.quantity} != {self.after}."
            )
        if self.requested_quantity is None:
            object.__setattr__(self, "requested_quantity", self.quantity)

    @property
    def shortfall(self) -> int:
        """Units the caller asked to remove that were not on hand."""
        return self.quantity - self.requested_quantity

    def to_dict(self) -> dict:
        return {
            "movement_id": self.movement_id,
            "product_id": self.product_id,
            "movement_type": self.movement_type.value,
            "quantity": self.quantity,
            "requested_quantity": self.requested_quantity,
            "before": self.before,
            "after": self.after,
            "note": self.note,
            "created_at": self.created_at.isoformat(),
            "user": self.user,
        }


# ══════════════════════════════════════════════════════════════
# PRODUCT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Product:
    """
    Catalog record with its current stock and full movement ledger.

    Owned by the inventory store; replaced (never edited) by the
    ledger engine on every movement.
    """
    product_id: str
    name: str
    sku: str
    category: str
    stock: int
    min_stock: int
    cost_price: int
    selling_price: int
    last_updated: datetime
    image: str = ""
    movements: Tuple[StockMovement, ...] = field(default_factory=tuple)
    status: Optional[StockStatus] = None

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not isinstance(self.stock, int) or self.stock < 0:
            raise ValueError(f"stock must be a non-negative integer, got {self.stock!r}.")
        if self.min_stock < 0:
            raise ValueError("min_stock cannot be negative.")
        if not isinstance(self.movements, tuple):
            object.__setattr__(self, "movements", tuple(self.movements))
        derived = derive_stock_status(self.stock, self.min_stock)
        if self.status is None:
            object.__setattr__(self, "status", derived)
        elif self.status != derived:
            raise ValueError(
                f"status {self.status.value} does not match stock "
                f"{self.stock} (expected {derived.value})."
            )

    @property
    def stock_value(self) -> int:
        """On-hand stock valued at cost."""
        return self.stock * self.cost_price

    @property
    def last_movement(self) -> Optional[StockMovement]:
        return self.movements[-1] if self.movements else None

    def to_dict(self, include_movements: bool = False) -> dict:
        data = {
            "product_id": self.product_id,
            "name": self.name,
            "sku": self.sku,
            "category": self.category,
            "image": self.image,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "status": self.status.value,
            "last_updated": self.last_updated.isoformat(),
        }
        if include_movements:
            data["movements"] = [m.to_dict() for m in self.movements]
        return data
