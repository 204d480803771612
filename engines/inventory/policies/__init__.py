"""
Backoffice Inventory Engine - Policies
========================================
Engine-specific validation policies for inventory operations.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from core.commands.base import Command
from core.commands.rejection import ReasonCode, RejectionReason
from core.errors import ValidationError
from core.primitives.inventory import Product


ProductLookup = Callable[[str], Optional[Product]]


# ══════════════════════════════════════════════════════════════
# OVERSELL POLICY
# ══════════════════════════════════════════════════════════════

class OversellPolicy(Enum):
    """
    What happens when a deduction asks for more than is on hand.

    CLAMP_TO_ZERO: stock floors at 0, the shortfall is absorbed and
                   recorded only as requested_quantity on the movement.
    REJECT:        the command is rejected with INSUFFICIENT_STOCK.
    """
    CLAMP_TO_ZERO = "CLAMP_TO_ZERO"
    REJECT = "REJECT"

    @classmethod
    def parse(cls, value) -> "OversellPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"'{value}' is not an oversell policy. "
                f"Must be one of: {[m.value for m in cls]}"
            ) from None

    def resolve(self, before: int, delta: int) -> int:
        """Stock after applying delta to before."""
        after = before + delta
        if after >= 0:
            return after
        if self is OversellPolicy.CLAMP_TO_ZERO:
            return 0
        raise ValidationError(
            f"Deduction of {-delta} exceeds stock on hand ({before})."
        )


# ══════════════════════════════════════════════════════════════
# COMMAND POLICIES
# ══════════════════════════════════════════════════════════════

class ProductExistsPolicy:
    """Reject a stock move whose product is not in the catalog."""

    def __init__(self, lookup: ProductLookup):
        self._lookup = lookup

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        product_id = command.payload.get("product_id")
        if self._lookup(product_id) is None:
            return RejectionReason(
                code=ReasonCode.NOT_FOUND,
                message=f"Product '{product_id}' not found.",
                policy_name="product_exists_policy",
            )
        return None


class InsufficientStockPolicy:
    """
    Reject a deduction past zero. Only active under
    OversellPolicy.REJECT; under the clamp it always passes.
    """

    def __init__(self, lookup: ProductLookup, oversell: OversellPolicy):
        self._lookup = lookup
        self._oversell = oversell

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        if self._oversell is not OversellPolicy.REJECT:
            return None

        product = self._lookup(command.payload.get("product_id"))
        if product is None:
            return None

        quantity = command.payload.get("quantity", 0)
        if product.stock + quantity < 0:
            return RejectionReason(
                code=ReasonCode.INSUFFICIENT_STOCK,
                message=(
                    f"Insufficient stock: {product.stock} available, "
                    f"{-quantity} requested for product {product.product_id}."
                ),
                policy_name="insufficient_stock_policy",
            )
        return None


class ImportBatchPreflightPolicy:
    """
    Every product in a batch must exist before any line is applied.
    Reports all unknown ids at once.
    """

    def __init__(self, lookup: ProductLookup):
        self._lookup = lookup

    def __call__(self, command: Command) -> Optional[RejectionReason]:
        unknown = []
        for line in command.payload.get("lines", []):
            product_id = line.get("product_id")
            if self._lookup(product_id) is None and product_id not in unknown:
                unknown.append(product_id)

        if unknown:
            return RejectionReason(
                code=ReasonCode.UNKNOWN_PRODUCT_IN_BATCH,
                message=f"Unknown product(s) in import batch: {', '.join(unknown)}.",
                policy_name="import_batch_preflight_policy",
            )
        return None
