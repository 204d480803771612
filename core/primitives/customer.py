"""
Backoffice Customer Primitive - Loyalty Customers
===================================================
Read-only customer records for the loyalty view and exports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Tuple


GOLD_SPEND_THRESHOLD = 5_000_000


class MembershipLevel(Enum):
    SILVER = "Silver"
    GOLD = "Gold"
    DIAMOND = "Diamond"


def membership_for_spend(total_spent: int) -> MembershipLevel:
    """GOLD above the spend threshold, else SILVER. DIAMOND is granted by hand."""
    if total_spent > GOLD_SPEND_THRESHOLD:
        return MembershipLevel.GOLD
    return MembershipLevel.SILVER


@dataclass(frozen=True)
class PurchasedProduct:
    product_id: str
    name: str
    total_quantity: int
    last_purchased: date
    image: str = ""


@dataclass(frozen=True)
class Customer:
    customer_id: str
    name: str
    email: str
    phone: str
    address: str
    dob: date
    total_spent: int
    order_count: int
    membership_level: MembershipLevel
    purchased_products: Tuple[PurchasedProduct, ...] = field(default_factory=tuple)
    order_ids: Tuple[str, ...] = field(default_factory=tuple)
    avatar: str = ""

    def __post_init__(self):
        if not self.customer_id:
            raise ValueError("customer_id must be non-empty.")
        if not isinstance(self.membership_level, MembershipLevel):
            raise ValueError("membership_level must be MembershipLevel enum.")
        if not isinstance(self.order_ids, tuple):
            object.__setattr__(self, "order_ids", tuple(self.order_ids))
        if not isinstance(self.purchased_products, tuple):
            object.__setattr__(self, "purchased_products", tuple(self.purchased_products))

    @property
    def birth_month(self) -> int:
        return self.dob.month

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "dob": self.dob.isoformat(),
            "total_spent": self.total_spent,
            "order_count": self.order_count,
            "membership_level": self.membership_level.value,
            "order_ids": list(self.order_ids),
            "purchased_products": [
                {
                    "product_id": p.product_id,
                    "name": p.name,
                    "total_quantity": p.total_quantity,
                    "last_purchased": p.last_purchased.isoformat(),
                }
                for p in self.purchased_products
            ],
        }
