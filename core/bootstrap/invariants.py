"""
Backoffice Bootstrap - Invariant Checks
=========================================
Each function verifies one consistency law over loaded records.
If any check fails → SystemBootstrapError is raised.

These checks do NOT auto-fix anything.
"""

import logging
from typing import Iterable, Sequence

from core.bootstrap.errors import SystemBootstrapError
from core.primitives.inventory import Product, derive_stock_status
from core.primitives.order import Order

logger = logging.getLogger("backoffice.bootstrap")


# ══════════════════════════════════════════════════════════════
# CHECK 1: Ledger chain continuity
# ══════════════════════════════════════════════════════════════

def check_ledger_continuity(products: Iterable[Product]) -> None:
    """
    Each movement starts where the previous one ended, and the last
    movement ends at the product's stock. A product without
    movements is accepted as-is.
    """
    count = 0
    for product in products:
        previous_after = None
        for movement in product.movements:
            if movement.product_id != product.product_id:
                raise SystemBootstrapError(
                    invariant="LEDGER_OWNERSHIP",
                    detail=(
                        f"Movement {movement.movement_id} belongs to "
                        f"{movement.product_id}, found under {product.product_id}."
                    ),
                )
            if previous_after is not None and movement.before != previous_after:
                raise SystemBootstrapError(
                    invariant="LEDGER_CONTINUITY",
                    detail=(
                        f"{product.product_id}: movement {movement.movement_id} "
                        f"starts at {movement.before}, previous ended at {previous_after}."
                    ),
                )
            previous_after = movement.after
            count += 1

        if previous_after is not None and previous_after != product.stock:
            raise SystemBootstrapError(
                invariant="LEDGER_BALANCE",
                detail=(
                    f"{product.product_id}: ledger ends at {previous_after}, "
                    f"stock is {product.stock}."
                ),
            )

    logger.info(f"✓ Ledger continuity OK ({count} movements).")


# ══════════════════════════════════════════════════════════════
# CHECK 2: Stock status derivation
# ══════════════════════════════════════════════════════════════

def check_stock_status(products: Iterable[Product]) -> None:
    for product in products:
        expected = derive_stock_status(product.stock, product.min_stock)
        if product.status != expected:
            raise SystemBootstrapError(
                invariant="STOCK_STATUS",
                detail=(
                    f"{product.product_id}: status {product.status.value}, "
                    f"expected {expected.value}."
                ),
            )
    logger.info("✓ Stock status derivation OK.")


# ══════════════════════════════════════════════════════════════
# CHECK 3: Status history tail
# ══════════════════════════════════════════════════════════════

def check_status_history(orders: Iterable[Order]) -> None:
    for order in orders:
        if not order.status_history:
            raise SystemBootstrapError(
                invariant="STATUS_HISTORY",
                detail=f"{order.order_id} has no status history.",
            )
        tail = order.status_history[-1].status
        if tail != order.status:
            raise SystemBootstrapError(
                invariant="STATUS_HISTORY",
                detail=(
                    f"{order.order_id}: history ends at {tail.value}, "
                    f"status is {order.status.value}."
                ),
            )
    logger.info("✓ Status history tails match.")


# ══════════════════════════════════════════════════════════════
# CHECK 4: Order totals
# ══════════════════════════════════════════════════════════════

def check_order_totals(orders: Iterable[Order]) -> None:
    for order in orders:
        if order.total_amount != order.computed_total:
            raise SystemBootstrapError(
                invariant="ORDER_TOTAL",
                detail=(
                    f"{order.order_id}: total_amount {order.total_amount} != "
                    f"subtotal {order.subtotal} - discount {order.discount}."
                ),
            )
    logger.info("✓ Order totals OK.")


# ══════════════════════════════════════════════════════════════
# CHECK 5: Order items reference the catalog
# ══════════════════════════════════════════════════════════════

def check_order_items_known(
    orders: Iterable[Order], products: Sequence[Product],
) -> None:
    known = {product.product_id for product in products}
    for order in orders:
        for item in order.items:
            if item.product_id not in known:
                raise SystemBootstrapError(
                    invariant="ORDER_ITEM_REFERENCE",
                    detail=(
                        f"{order.order_id} references unknown product "
                        f"{item.product_id}."
                    ),
                )
    logger.info("✓ Order items reference known products.")
