"""
Backoffice Projections - Orders Read Model
============================================
Pure query functions over order snapshots: list filters, the
revenue summary cards, per-status counts and the daily sales series.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from core.primitives.order import Order, OrderStatus


@dataclass(frozen=True)
class OrderSummary:
    total_revenue: int
    total_discount: int
    order_count: int
    average_order_value: float


@dataclass(frozen=True)
class DailySales:
    day: date
    revenue: int
    orders: int


def filter_orders(
    orders: Iterable[Order],
    search: str = "",
    status: Optional[OrderStatus] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> List[Order]:
    """
    search matches customer name, order id, phone or discount code
    (case-insensitive substring). None means "all" for the others.
    month/year read created_at.
    """
    term = (search or "").strip().lower()
    if status is not None:
        status = OrderStatus.parse(status)

    result = []
    for order in orders:
        if term and not (
            term in order.customer_name.lower()
            or term in order.order_id.lower()
            or term in order.phone
            or (order.discount_code and term in order.discount_code.lower())
        ):
            continue
        if status is not None and order.status is not status:
            continue
        if month is not None and order.created_at.month != int(month):
            continue
        if year is not None and order.created_at.year != int(year):
            continue
        result.append(order)
    return result


def order_summary(orders: Iterable[Order]) -> OrderSummary:
    orders = list(orders)
    revenue = sum(o.total_amount for o in orders)
    count = len(orders)
    return OrderSummary(
        total_revenue=revenue,
        total_discount=sum(o.discount or 0 for o in orders),
        order_count=count,
        average_order_value=revenue / count if count else 0.0,
    )


def count_by_status(orders: Iterable[Order]) -> Dict[OrderStatus, int]:
    """Every status present as a key, zero when unused."""
    counts = {status: 0 for status in OrderStatus}
    for order in orders:
        counts[order.status] += 1
    return counts


def pending_order_count(orders: Iterable[Order]) -> int:
    """The "new orders" badge."""
    return sum(1 for o in orders if o.status is OrderStatus.PENDING)


def daily_sales(orders: Iterable[Order]) -> List[DailySales]:
    buckets: Dict[date, List[Order]] = {}
    for order in orders:
        buckets.setdefault(order.created_at.date(), []).append(order)

    return [
        DailySales(
            day=day,
            revenue=sum(o.total_amount for o in buckets[day]),
            orders=len(buckets[day]),
        )
        for day in sorted(buckets)
    ]
