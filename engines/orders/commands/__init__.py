"""
Backoffice Orders Engine - Request Commands
=============================================
Typed order requests that convert into canonical Command objects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.commands.base import Command
from core.errors import ValidationError
from core.primitives.order import OrderStatus


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDERS_ORDER_SET_STATUS_REQUEST = "orders.order.set_status.request"

ORDERS_COMMAND_TYPES = frozenset({
    ORDERS_ORDER_SET_STATUS_REQUEST,
})


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SetOrderStatusRequest:
    """
    Request to move an order to a new status.

    reason becomes the note of the appended StatusLog and, when
    given, the order's return_reason.
    """
    order_id: str
    new_status: OrderStatus
    reason: Optional[str] = None

    def __post_init__(self):
        if not self.order_id:
            raise ValidationError("order_id must be non-empty.")
        if not isinstance(self.new_status, OrderStatus):
            object.__setattr__(self, "new_status", OrderStatus.parse(self.new_status))
        if self.reason is not None and not self.reason.strip():
            object.__setattr__(self, "reason", None)

    def to_command(
        self,
        *,
        actor_id: str,
        command_id: uuid.UUID,
        correlation_id: uuid.UUID,
        issued_at: datetime,
    ) -> Command:
        return Command(
            command_id=command_id,
            command_type=ORDERS_ORDER_SET_STATUS_REQUEST,
            actor_id=actor_id,
            payload={
                "order_id": self.order_id,
                "new_status": self.new_status.value,
                "reason": self.reason,
            },
            issued_at=issued_at,
            correlation_id=correlation_id,
            source_engine="orders",
        )
