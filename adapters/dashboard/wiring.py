"""
Backoffice Dashboard Adapter - Wiring
=======================================
Builds one in-memory dashboard: seed → startup checks → stores →
bus with policies and handlers → facade.
"""

from __future__ import annotations

import logging
from typing import Optional

from ai.insights.client import GeminiInsightsClient
from ai.insights.models import OrderAnalyzer
from ai.insights.refresher import InsightsRefresher
from adapters.dashboard.facade import DashboardFacade
from core.bootstrap.seed import SeedData, generate_seed
from core.bootstrap.self_check import run_bootstrap_checks
from core.commands.bus import CommandBus
from core.commands.dispatcher import CommandDispatcher
from core.config.settings import BackofficeSettings, load_settings
from core.events.registry import SubscriberRegistry
from core.time.clock import Clock, get_default_clock
from engines.customer.services import CustomerStore
from engines.inventory.services import InventoryService, InventoryStore
from engines.orders.policies import TransitionPolicy, permit_any_transition
from engines.orders.services import OrderService, OrderStore

logger = logging.getLogger("backoffice.bootstrap")


def build_dashboard(
    settings: Optional[BackofficeSettings] = None,
    clock: Optional[Clock] = None,
    analyzer: Optional[OrderAnalyzer] = None,
    *,
    seed_data: Optional[SeedData] = None,
    transition_policy: TransitionPolicy = permit_any_transition,
) -> DashboardFacade:
    """
    Raises SystemBootstrapError if the seed data is inconsistent.
    """
    settings = settings or load_settings()
    clock = clock or get_default_clock()

    if seed_data is None:
        seed_data = generate_seed(
            seed=settings.seed,
            order_count=settings.order_count,
            system_actor=settings.system_actor,
            admin_actor=settings.admin_actor,
        )
    run_bootstrap_checks(seed_data.products, seed_data.orders)

    bus = CommandBus(
        dispatcher=CommandDispatcher(clock=clock),
        registry=SubscriberRegistry(),
    )

    inventory_store = InventoryStore(seed_data.products)
    inventory = InventoryService(
        command_bus=bus,
        store=inventory_store,
        clock=clock,
        oversell_policy=settings.oversell_policy,
        admin_actor=settings.admin_actor,
    )
    orders = OrderService(
        command_bus=bus,
        product_lookup=inventory_store.get_product,
        store=OrderStore(seed_data.orders),
        clock=clock,
        transition_policy=transition_policy,
        oversell_policy=settings.oversell_policy,
        admin_actor=settings.admin_actor,
        system_actor=settings.system_actor,
    )

    if analyzer is None:
        analyzer = GeminiInsightsClient(settings, clock=clock)

    logger.info(
        f"Dashboard ready: {len(seed_data.products)} products, "
        f"{len(seed_data.orders)} orders, {len(seed_data.customers)} customers "
        f"(oversell={inventory.oversell_policy.value})"
    )

    return DashboardFacade(
        command_bus=bus,
        inventory=inventory,
        orders=orders,
        customers=CustomerStore(seed_data.customers),
        insights=InsightsRefresher(
            analyzer,
            cooldown_seconds=settings.insights_cooldown_seconds,
            clock=clock,
        ),
        clock=clock,
    )
