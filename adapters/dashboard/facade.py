"""
Backoffice Dashboard Adapter - Facade
=======================================
One object per session holding the stores, services and listener
registry. Every method is either a command (returns CommandResult)
or a read over a consistent snapshot.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional

from ai.insights.models import InsightResult
from ai.insights.refresher import InsightsRefresher
from core.commands.bus import CommandBus, CommandResult
from core.documents.export import (
    customer_export_rows,
    order_export_rows,
    select_orders,
)
from core.documents.invoice import DEFAULT_SELLER, Invoice, SellerInfo, build_invoice
from core.errors import NotFoundError
from core.primitives.customer import Customer
from core.primitives.inventory import MovementType, Product, StockMovement
from core.primitives.order import Order, OrderStatus
from core.time.clock import Clock
from engines.customer.services import CustomerStore
from engines.inventory.services import InventoryService
from engines.orders.services import OrderService
from projections.customers import filter_customers
from projections.inventory import (
    InventorySummary,
    StockFilter,
    filter_products,
    inventory_summary,
)
from projections.orders import (
    DailySales,
    OrderSummary,
    count_by_status,
    daily_sales,
    filter_orders,
    order_summary,
    pending_order_count,
)


class DashboardFacade:
    def __init__(
        self,
        *,
        command_bus: CommandBus,
        inventory: InventoryService,
        orders: OrderService,
        customers: CustomerStore,
        insights: InsightsRefresher,
        clock: Clock,
        seller: SellerInfo = DEFAULT_SELLER,
    ):
        self._bus = command_bus
        self._inventory = inventory
        self._orders = orders
        self._customers = customers
        self._insights = insights
        self._clock = clock
        self._seller = seller

    @property
    def command_bus(self) -> CommandBus:
        return self._bus

    @property
    def inventory(self) -> InventoryService:
        return self._inventory

    @property
    def orders(self) -> OrderService:
        return self._orders

    @property
    def insights(self) -> InsightsRefresher:
        return self._insights

    # ══════════════════════════════════════════════════════════
    # LISTENERS
    # ══════════════════════════════════════════════════════════

    def subscribe(self, event_type: str, handler: Callable) -> None:
        """event_type '*' receives every event, rejections included."""
        self._bus.registry.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Callable) -> bool:
        return self._bus.registry.unsubscribe(event_type, handler)

    # ══════════════════════════════════════════════════════════
    # ORDERS
    # ══════════════════════════════════════════════════════════

    def set_status(
        self,
        order_id: str,
        new_status: Any,
        reason: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> CommandResult:
        return self._orders.set_status(order_id, new_status, reason=reason, actor=actor)

    def get_order(self, order_id: str) -> Optional[Order]:
        return self._orders.get_order(order_id)

    def list_orders(
        self,
        search: str = "",
        status: Optional[OrderStatus] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ) -> List[Order]:
        return filter_orders(
            self._orders.list_orders(), search=search, status=status, month=month, year=year,
        )

    def find_order_by_id(self, scanned: str) -> Order:
        return self._orders.find_order_by_id(scanned)

    def order_summary(self, **filters) -> OrderSummary:
        return order_summary(self.list_orders(**filters))

    def count_by_status(self) -> Dict[OrderStatus, int]:
        return count_by_status(self._orders.list_orders())

    def pending_order_count(self) -> int:
        return pending_order_count(self._orders.list_orders())

    def daily_sales(self) -> List[DailySales]:
        return daily_sales(self._orders.list_orders())

    def build_invoice(self, order_id: str) -> Invoice:
        order = self._orders.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return build_invoice(order, self._clock.now_utc(), self._seller)

    def export_orders(
        self,
        selected_ids: Optional[Iterable[str]] = None,
        **filters,
    ) -> List[dict]:
        """
        Rows for the selected orders, taken from all orders, or for
        the filtered list when nothing is selected.
        """
        if selected_ids is not None:
            orders = select_orders(self._orders.list_orders(), selected_ids)
        else:
            orders = self.list_orders(**filters)
        return order_export_rows(orders)

    # ══════════════════════════════════════════════════════════
    # INVENTORY
    # ══════════════════════════════════════════════════════════

    def apply_import_batch(
        self, items: Iterable[Any], note: str = "", user: Optional[str] = None,
    ) -> CommandResult:
        return self._inventory.apply_import_batch(items, note=note, user=user)

    def apply_movement(
        self,
        product_id: str,
        movement_type: MovementType,
        quantity_delta: int,
        note: str = "",
        user: Optional[str] = None,
    ) -> CommandResult:
        return self._inventory.apply_movement(
            product_id, movement_type, quantity_delta, note=note, user=user,
        )

    def record_return(self, product_id: str, quantity: int, note: str = "",
                      user: Optional[str] = None) -> CommandResult:
        return self._inventory.record_return(product_id, quantity, note=note, user=user)

    def record_export(self, product_id: str, quantity: int, note: str = "",
                      user: Optional[str] = None) -> CommandResult:
        return self._inventory.record_export(product_id, quantity, note=note, user=user)

    def record_audit(self, product_id: str, counted: int, note: str = "",
                     user: Optional[str] = None) -> CommandResult:
        return self._inventory.record_audit(product_id, counted, note=note, user=user)

    def get_product(self, product_id: str) -> Optional[Product]:
        return self._inventory.get_product(product_id)

    def list_products(self, search: str = "", stock_filter=StockFilter.ALL) -> List[Product]:
        return filter_products(
            self._inventory.list_products(), search=search, stock_filter=stock_filter,
        )

    def get_movements(self, product_id: Optional[str] = None) -> List[StockMovement]:
        return self._inventory.get_movements(product_id)

    def inventory_summary(self) -> InventorySummary:
        return inventory_summary(self._inventory.list_products())

    # ══════════════════════════════════════════════════════════
    # CUSTOMERS
    # ══════════════════════════════════════════════════════════

    def list_customers(self, search: str = "", birth_month: Optional[int] = None,
                       level=None) -> List[Customer]:
        return filter_customers(
            self._customers.list_customers(),
            search=search, birth_month=birth_month, level=level,
        )

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self._customers.get_customer(customer_id)

    def customer_orders(self, customer_id: str) -> List[Order]:
        customer = self._customers.require_customer(customer_id)
        return self._customers.orders_for_customer(customer, self._orders)

    def export_customers(self, **filters) -> List[dict]:
        return customer_export_rows(self.list_customers(**filters))

    # ══════════════════════════════════════════════════════════
    # INSIGHTS
    # ══════════════════════════════════════════════════════════

    async def refresh_insights(self, force: bool = False) -> Optional[InsightResult]:
        """None when the refresh was suppressed (in flight or cooling down)."""
        return await self._insights.refresh(self._orders.list_orders(), force=force)
