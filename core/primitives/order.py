"""
Backoffice Order Primitive - Orders, Line Items, Status History
=================================================================
RULES (NON-NEGOTIABLE):
- Line items are price/quantity snapshots taken at order creation
- status_history is append-only
- The last history entry's status always equals Order.status
- total_amount == subtotal - discount for well-formed orders
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from core.errors import ValidationError


# ══════════════════════════════════════════════════════════════
# ORDER STATUS
# ══════════════════════════════════════════════════════════════

class OrderStatus(Enum):
    """
    Order lifecycle.

    PENDING -> PROCESSING -> SHIPPED -> DELIVERED, with
    EXCHANGE_RETURN reachable from anywhere. Which moves are
    allowed is a policy (engines.orders.policies), not a property
    of the enum.
    """
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    EXCHANGE_RETURN = "Exchange/Return"

    @classmethod
    def parse(cls, value: Any) -> "OrderStatus":
        """
        Accept a member, a member name (any case) or a member value.

        Raises ValidationError for anything outside the enumeration.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            for member in cls:
                if text == member.value or text.upper() == member.name:
                    return member
        raise ValidationError(
            f"'{value}' is not an order status. "
            f"Must be one of: {[m.name for m in cls]}"
        )


# Forward fulfillment path, used for seeding history and by strict graphs.
FULFILLMENT_PATH: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)


# ══════════════════════════════════════════════════════════════
# STATUS LOG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StatusLog:
    """One entry of an order's status history."""
    status: OrderStatus
    updated_at: datetime
    updated_by: str
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "updated_at": self.updated_at.isoformat(),
            "updated_by": self.updated_by,
            "note": self.note,
        }


# ══════════════════════════════════════════════════════════════
# ORDER ITEM
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderItem:
    """Line item. product_id references the catalog; price is a snapshot."""
    product_id: str
    name: str
    price: int
    quantity: int
    image: str = ""
    size: str = ""
    color: str = ""

    def __post_init__(self):
        if not self.product_id:
            raise ValueError("product_id must be non-empty.")
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("quantity must be positive integer.")
        if self.price < 0:
            raise ValueError("price cannot be negative.")

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image,
            "size": self.size,
            "color": self.color,
        }


# ══════════════════════════════════════════════════════════════
# ORDER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Order:
    order_id: str
    customer_name: str
    email: str
    phone: str
    address: str
    status: OrderStatus
    status_history: Tuple[StatusLog, ...]
    items: Tuple[OrderItem, ...]
    total_amount: int
    created_at: datetime
    discount: int = 0
    discount_code: Optional[str] = None
    note: Optional[str] = None
    return_reason: Optional[str] = None

    def __post_init__(self):
        if not self.order_id:
            raise ValueError("order_id must be non-empty.")
        if not isinstance(self.status, OrderStatus):
            raise ValueError("status must be OrderStatus enum.")
        if not isinstance(self.items, tuple):
            object.__setattr__(self, "items", tuple(self.items))
        if not isinstance(self.status_history, tuple):
            object.__setattr__(self, "status_history", tuple(self.status_history))
        if not self.status_history:
            raise ValueError(f"Order {self.order_id} must have a status history.")
        if self.status_history[-1].status != self.status:
            raise ValueError(
                f"Order {self.order_id}: last history entry "
                f"{self.status_history[-1].status.name} does not match "
                f"status {self.status.name}."
            )
        if self.discount < 0:
            raise ValueError("discount cannot be negative.")

    @property
    def subtotal(self) -> int:
        return sum(item.line_total for item in self.items)

    @property
    def computed_total(self) -> int:
        return self.subtotal - self.discount

    @property
    def last_status_change(self) -> StatusLog:
        return self.status_history[-1]

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "status": self.status.value,
            "status_history": [log.to_dict() for log in self.status_history],
            "items": [item.to_dict() for item in self.items],
            "total_amount": self.total_amount,
            "discount": self.discount,
            "discount_code": self.discount_code,
            "created_at": self.created_at.isoformat(),
            "note": self.note,
            "return_reason": self.return_reason,
        }
