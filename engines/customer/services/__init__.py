"""
Backoffice Customer Engine - Service Layer
============================================
Read-only loyalty customer records. Loaded once from seed data;
no command changes them in-session.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from core.errors import NotFoundError
from core.primitives.customer import Customer
from core.primitives.order import Order


class CustomerStore:
    def __init__(self, customers: Iterable[Customer] = ()):
        self._customers: Dict[str, Customer] = {}
        for customer in customers:
            self.load(customer)

    def load(self, customer: Customer) -> None:
        if customer.customer_id in self._customers:
            raise ValueError(f"Customer {customer.customer_id} already loaded.")
        self._customers[customer.customer_id] = customer

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self._customers.get(customer_id)

    def require_customer(self, customer_id: str) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def list_customers(self) -> List[Customer]:
        return list(self._customers.values())

    def orders_for_customer(self, customer: Customer, order_store) -> List[Order]:
        """
        The customer's orders that exist in order_store, in the
        customer's order_ids order. Unknown ids are skipped.
        """
        orders = []
        for order_id in customer.order_ids:
            order = order_store.get_order(order_id)
            if order is not None:
                orders.append(order)
        return orders
