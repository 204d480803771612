"""
Backoffice Documents - Export Rows
====================================
Ordered column dicts for spreadsheet export. Writing the file
is the presentation layer's job.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from core.primitives.customer import Customer
from core.primitives.order import Order


ORDER_EXPORT_COLUMNS = (
    "Order ID", "Customer", "Phone", "Amount Paid", "Voucher", "Discount", "Status",
)

CUSTOMER_EXPORT_COLUMNS = (
    "Customer ID", "Name", "Phone", "Email", "Date of Birth", "Address",
    "Membership", "Total Spent", "Order Count", "Order IDs",
)


def select_orders(
    orders: Iterable[Order],
    selected_ids: Optional[Iterable[str]] = None,
) -> List[Order]:
    """All orders, or only those whose id is in selected_ids (input order kept)."""
    orders = list(orders)
    if selected_ids is None:
        return orders
    wanted = set(selected_ids)
    return [order for order in orders if order.order_id in wanted]


def order_export_rows(orders: Iterable[Order]) -> List[dict]:
    rows = []
    for order in orders:
        rows.append(dict(zip(ORDER_EXPORT_COLUMNS, (
            order.order_id,
            order.customer_name,
            order.phone,
            order.total_amount,
            order.discount_code or "",
            order.discount or 0,
            order.status.value,
        ))))
    return rows


def customer_export_rows(customers: Iterable[Customer]) -> List[dict]:
    rows = []
    for customer in customers:
        rows.append(dict(zip(CUSTOMER_EXPORT_COLUMNS, (
            customer.customer_id,
            customer.name,
            customer.phone,
            customer.email,
            customer.dob.isoformat(),
            customer.address,
            customer.membership_level.value,
            customer.total_spent,
            customer.order_count,
            ", ".join(customer.order_ids),
        ))))
    return rows
