"""
Backoffice Projections - Inventory Read Model
===============================================
Pure query functions over product snapshots: stat cards,
list filters and the global movement feed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from core.errors import ValidationError
from core.primitives.inventory import Product, StockMovement


ORDER_REFERENCE_PATTERN = re.compile(r"ORD-\d+")


class StockFilter(Enum):
    ALL = "ALL"
    LOW = "LOW"
    OUT = "OUT"

    @classmethod
    def parse(cls, value) -> "StockFilter":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"'{value}' is not a stock filter. Must be one of: {[m.value for m in cls]}"
            ) from None


@dataclass(frozen=True)
class InventorySummary:
    total_items: int
    low_stock_items: int
    out_of_stock_items: int
    total_value: int


def is_low_stock(product: Product) -> bool:
    """Low means some stock left, at or under the threshold."""
    return 0 < product.stock <= product.min_stock


def inventory_summary(products: Iterable[Product]) -> InventorySummary:
    products = list(products)
    return InventorySummary(
        total_items=len(products),
        low_stock_items=sum(1 for p in products if is_low_stock(p)),
        out_of_stock_items=sum(1 for p in products if p.stock == 0),
        total_value=sum(p.stock_value for p in products),
    )


def filter_products(
    products: Iterable[Product],
    search: str = "",
    stock_filter=StockFilter.ALL,
) -> List[Product]:
    """Case-insensitive substring match on name or SKU, then the stock filter."""
    term = (search or "").strip().lower()
    stock_filter = StockFilter.parse(stock_filter)

    result = []
    for product in products:
        if term and term not in product.name.lower() and term not in product.sku.lower():
            continue
        if stock_filter is StockFilter.LOW and not is_low_stock(product):
            continue
        if stock_filter is StockFilter.OUT and product.stock != 0:
            continue
        result.append(product)
    return result


def movement_feed(
    products: Iterable[Product],
    product_id: Optional[str] = None,
) -> List[StockMovement]:
    """Every movement (or one product's), newest first."""
    movements: List[StockMovement] = []
    for product in products:
        if product_id is None or product.product_id == product_id:
            movements.extend(product.movements)
    return sorted(movements, key=lambda m: m.created_at, reverse=True)


def extract_order_reference(note: str) -> Optional[str]:
    """'export for order ORD-012' → 'ORD-012'."""
    match = ORDER_REFERENCE_PATTERN.search(note or "")
    return match.group(0) if match else None
