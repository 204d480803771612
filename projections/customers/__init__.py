"""
Backoffice Projections - Customers Read Model
===============================================
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from core.primitives.customer import Customer, MembershipLevel


def filter_customers(
    customers: Iterable[Customer],
    search: str = "",
    birth_month: Optional[int] = None,
    level: Optional[MembershipLevel] = None,
) -> List[Customer]:
    """search matches name or id (case-insensitive) or phone (substring)."""
    raw = (search or "").strip()
    term = raw.lower()
    if level is not None and not isinstance(level, MembershipLevel):
        level = MembershipLevel(level)

    result = []
    for customer in customers:
        if term and not (
            term in customer.name.lower()
            or raw in customer.phone
            or term in customer.customer_id.lower()
        ):
            continue
        if birth_month is not None and customer.birth_month != int(birth_month):
            continue
        if level is not None and customer.membership_level is not level:
            continue
        result.append(customer)
    return result
