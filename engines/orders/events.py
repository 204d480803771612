"""
Backoffice Orders Engine - Event Types and Payload Builders
=============================================================
"""

from __future__ import annotations

from datetime import datetime

from core.commands.base import Command
from core.primitives.order import OrderStatus


ORDERS_ORDER_STATUS_CHANGED_V1 = "orders.order.status_changed.v1"


def build_status_changed_payload(
    command: Command,
    *,
    previous_status: OrderStatus,
    updated_at: datetime,
    sale_movement_ids: list,
) -> dict:
    return {
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
        "order_id": command.payload["order_id"],
        "previous_status": previous_status.value,
        "new_status": command.payload["new_status"],
        "reason": command.payload.get("reason"),
        "updated_at": updated_at,
        "updated_by": command.actor_id,
        "sale_movement_ids": list(sale_movement_ids),
    }
