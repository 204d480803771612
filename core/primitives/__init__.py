"""
Backoffice Core Primitives - Shared Records
=============================================
Immutable records shared by every engine:

    inventory   Product, StockMovement, stock status derivation
    order       Order, OrderItem, StatusLog, OrderStatus
    customer    Customer, PurchasedProduct, MembershipLevel

Records are frozen dataclasses. Stores replace a record with an
updated snapshot; they never mutate one in place.
"""

from core.primitives.customer import (
    Customer,
    MembershipLevel,
    PurchasedProduct,
    membership_for_spend,
)
from core.primitives.inventory import (
    MovementType,
    Product,
    StockMovement,
    StockStatus,
    derive_stock_status,
)
from core.primitives.order import (
    Order,
    OrderItem,
    OrderStatus,
    StatusLog,
)

__all__ = [
    # ── Inventory ─────────────────────────────────────────────
    "MovementType",
    "Product",
    "StockMovement",
    "StockStatus",
    "derive_stock_status",
    # ── Orders ────────────────────────────────────────────────
    "Order",
    "OrderItem",
    "OrderStatus",
    "StatusLog",
    # ── Customers ─────────────────────────────────────────────
    "Customer",
    "MembershipLevel",
    "PurchasedProduct",
    "membership_for_spend",
]
