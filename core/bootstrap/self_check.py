"""
Backoffice Bootstrap - Self-Check Orchestrator
================================================
Runs all consistency checks over the loaded stores.
If any check fails → SystemBootstrapError propagates → the
dashboard is never returned.

Check order:
1. Ledger chain continuity
2. Stock status derivation
3. Status history tails
4. Order totals
5. Order items reference the catalog
"""

import logging
from typing import Sequence

from core.bootstrap.invariants import (
    check_ledger_continuity,
    check_order_items_known,
    check_order_totals,
    check_status_history,
    check_stock_status,
)
from core.primitives.inventory import Product
from core.primitives.order import Order

logger = logging.getLogger("backoffice.bootstrap")


def run_bootstrap_checks(products: Sequence[Product], orders: Sequence[Order]) -> None:
    logger.info("═══ Backoffice Self-Check Starting ═══")

    check_ledger_continuity(products)
    check_stock_status(products)
    check_status_history(orders)
    check_order_totals(orders)
    check_order_items_known(orders, products)

    logger.info("═══ Backoffice Self-Check PASSED ═══")
