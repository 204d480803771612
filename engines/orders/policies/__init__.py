"""
Backoffice Orders Engine - Policies
=====================================
Order existence, the transition hook, and the fulfillment stock
check that guards the Processing deduction.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Mapping, Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.inventory import Product
from core.primitives.order import FULFILLMENT_PATH, Order, OrderStatus
from engines.inventory.policies import OversellPolicy


OrderLookup = Callable[[str], Optional[Order]]
ProductLookup = Callable[[str], Optional[Product]]

# (current, new) -> allowed?
TransitionPolicy = Callable[[OrderStatus, OrderStatus], bool]


# ══════════════════════════════════════════════════════════════
# TRANSITION HOOKS
# ══════════════════════════════════════════════════════════════

def permit_any_transition(current: OrderStatus, new: OrderStatus) -> bool:
    """Default hook: any status may follow any status."""
    return True


class GraphTransitionPolicy:
    """
    Allow only the edges listed in `edges`. Re-setting the current
    status is always allowed.

    Usage:
        strict = GraphTransitionPolicy.fulfillment()
        strict(OrderStatus.PENDING, OrderStatus.DELIVERED)  # False
    """

    def __init__(self, edges: Mapping[OrderStatus, Iterable[OrderStatus]]):
        self._edges: Dict[OrderStatus, frozenset] = {
            status: frozenset(targets) for status, targets in edges.items()
        }

    def __call__(self, current: OrderStatus, new: OrderStatus) -> bool:
        if current == new:
            return True
        return new in self._edges.get(current, frozenset())

    def allowed_from(self, current: OrderStatus) -> frozenset:
        return self._edges.get(current, frozenset())

    @classmethod
    def fulfillment(cls) -> "GraphTransitionPolicy":
        """Forward along the fulfillment path; Exchange/Return from any state."""
        edges: Dict[OrderStatus, set] = {status: set() for status in OrderStatus}
        for current, following in zip(FULFILLMENT_PATH, FULFILLMENT_PATH[1:]):
            edges[current].add(following)
        for status in OrderStatus:
            if status is not OrderStatus.EXCHANGE_RETURN:
                edges[status].add(OrderStatus.EXCHANGE_RETURN)
        return cls(edges)


# ══════════════════════════════════════════════════════════════
# COMMAND POLICIES
# ══════════════════════════════════════════════════════════════

class OrderExistsPolicy:
    def __init__(self, lookup: OrderLookup):
        self._lookup = lookup

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        order_id = command.payload.get("order_id")
        if self._lookup(order_id) is None:
            return RejectionReason(
                code=ReasonCode.NOT_FOUND,
                message=f"Order '{order_id}' not found.",
                policy_name="order_exists_policy",
            )
        return None


class TransitionGuardPolicy:
    """Apply the configured TransitionPolicy to a status change."""

    def __init__(self, lookup: OrderLookup, transition: TransitionPolicy):
        self._lookup = lookup
        self._transition = transition

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        order = self._lookup(command.payload.get("order_id"))
        if order is None:
            return None

        new_status = OrderStatus.parse(command.payload.get("new_status"))
        if not self._transition(order.status, new_status):
            return RejectionReason(
                code=ReasonCode.TRANSITION_NOT_ALLOWED,
                message=(
                    f"Order {order.order_id} cannot move from "
                    f"{order.status.value} to {new_status.value}."
                ),
                policy_name="transition_guard_policy",
            )
        return None


def enters_fulfillment(current: OrderStatus, new: OrderStatus) -> bool:
    """True when a status change must deduct stock."""
    return new is OrderStatus.PROCESSING and current is not OrderStatus.PROCESSING


class FulfillmentStockPolicy:
    """
    Under OversellPolicy.REJECT, refuse to enter Processing unless
    every line can be deducted in full. Quantities of lines sharing
    a product are summed. Inactive under the clamp.
    """

    def __init__(
        self,
        order_lookup: OrderLookup,
        product_lookup: ProductLookup,
        oversell: OversellPolicy,
    ):
        self._order_lookup = order_lookup
        self._product_lookup = product_lookup
        self._oversell = oversell

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        if self._oversell is not OversellPolicy.REJECT:
            return None

        order = self._order_lookup(command.payload.get("order_id"))
        if order is None:
            return None

        new_status = OrderStatus.parse(command.payload.get("new_status"))
        if not enters_fulfillment(order.status, new_status):
            return None

        needed: Dict[str, int] = {}
        for item in order.items:
            needed[item.product_id] = needed.get(item.product_id, 0) + item.quantity

        problems = []
        for product_id, quantity in needed.items():
            product = self._product_lookup(product_id)
            if product is None:
                problems.append(f"{product_id} is not in the catalog")
            elif product.stock < quantity:
                problems.append(
                    f"{product_id} has {product.stock}, needs {quantity}"
                )

        if problems:
            return RejectionReason(
                code=ReasonCode.INSUFFICIENT_STOCK,
                message=(
                    f"Order {order.order_id} cannot enter Processing: "
                    + "; ".join(problems) + "."
                ),
                policy_name="fulfillment_stock_policy",
            )
        return None
