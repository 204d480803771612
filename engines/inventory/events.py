"""
Backoffice Inventory Engine - Event Types and Payload Builders
================================================================
Inventory builds payload only. The store applies it; the bus
publishes it to listeners.
"""

from __future__ import annotations

from datetime import datetime

from core.commands.base import Command
from core.primitives.inventory import MovementType


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_STOCK_MOVED_V1 = "inventory.stock.moved.v1"
INVENTORY_STOCK_BATCH_IMPORTED_V1 = "inventory.stock.batch_imported.v1"


def movement_id_for(movement_type: MovementType, product_id: str, sequence: int) -> str:
    """MOV-SALE-PROD-0001-0003: type, product, 1-based position in its ledger."""
    return f"MOV-{movement_type.value}-{product_id}-{sequence:04d}"


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _base_payload(command: Command) -> dict:
    return {
        "actor_id": command.actor_id,
        "correlation_id": command.correlation_id,
        "command_id": command.command_id,
    }


def build_stock_moved_payload(
    command: Command,
    *,
    movement_id: str,
    before: int,
    after: int,
    created_at: datetime,
) -> dict:
    payload = _base_payload(command)
    payload.update({
        "movement_id": movement_id,
        "product_id": command.payload["product_id"],
        "movement_type": command.payload["movement_type"],
        "quantity": after - before,
        "requested_quantity": command.payload["quantity"],
        "before": before,
        "after": after,
        "note": command.payload.get("note", ""),
        "created_at": created_at,
        "user": command.actor_id,
    })
    return payload


def build_batch_imported_payload(command: Command, movement_ids: list) -> dict:
    payload = _base_payload(command)
    payload.update({
        "lines": list(command.payload["lines"]),
        "movement_ids": list(movement_ids),
        "note": command.payload.get("note", ""),
    })
    return payload
