"""
Backoffice Inventory Engine - Ledger Tests
============================================
Every stock change is one movement; stock never goes negative.

Scenarios:
1. Import / export / audit / return arithmetic
2. Oversell clamp (50 → 10 → 0, shortfall on the movement)
3. Oversell REJECT policy
4. Unknown product → NOT_FOUND rejection, nothing changes
5. Import batch: all-or-nothing preflight
6. Movement ids and the global feed
7. A failing listener never undoes a movement
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from core.commands.bus import CommandBus
from core.commands.dispatcher import CommandDispatcher
from core.commands.rejection import ReasonCode
from core.errors import NotFoundError, ValidationError
from core.events.registry import SubscriberRegistry
from core.primitives.inventory import (
    MovementType,
    Product,
    StockMovement,
    StockStatus,
)
from core.time.clock import FixedClock
from engines.inventory.commands import ImportBatchRequest, ImportLine, StockMoveRequest
from engines.inventory.events import (
    INVENTORY_STOCK_BATCH_IMPORTED_V1,
    INVENTORY_STOCK_MOVED_V1,
    movement_id_for,
)
from engines.inventory.policies import OversellPolicy
from engines.inventory.services import InventoryService, InventoryStore


NOW = datetime(2024, 5, 17, 9, 0, tzinfo=timezone.utc)
OPENED = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════
# TEST INFRASTRUCTURE
# ══════════════════════════════════════════════════════════════

def _product(product_id: str = "PROD-0001", stock: int = 50) -> Product:
    opening = StockMovement(
        movement_id=f"MOV-IMPORT-{product_id}-0001",
        product_id=product_id,
        movement_type=MovementType.IMPORT,
        quantity=stock,
        before=0,
        after=stock,
        note="opening",
        created_at=OPENED,
        user="Kho_Manager",
    )
    return Product(
        product_id=product_id,
        name=f"Product {product_id}",
        sku=f"SKU-{product_id}",
        category="Áo thun",
        stock=stock,
        min_stock=20,
        cost_price=100_000,
        selling_price=250_000,
        last_updated=OPENED,
        movements=(opening,),
    )


def _service(*products, oversell=OversellPolicy.CLAMP_TO_ZERO, clock=None):
    registry = SubscriberRegistry()
    clock = clock or FixedClock(NOW)
    bus = CommandBus(dispatcher=CommandDispatcher(clock=clock), registry=registry)
    store = InventoryStore(products or (_product(),))
    service = InventoryService(
        command_bus=bus, store=store, clock=clock, oversell_policy=oversell,
    )
    return service, registry


# ══════════════════════════════════════════════════════════════
# MOVEMENT ARITHMETIC
# ══════════════════════════════════════════════════════════════

class TestStockMovements:
    def test_import_adds(self):
        service, _ = _service()
        result = service.apply_movement("PROD-0001", MovementType.IMPORT, 30, "restock")

        assert result.is_accepted
        movement = result.execution_result.movement
        assert (movement.before, movement.after, movement.quantity) == (50, 80, 30)
        assert movement.note == "restock"
        assert movement.user == "Admin"
        assert movement.created_at == NOW
        assert service.get_product("PROD-0001").stock == 80
        assert service.get_product("PROD-0001").last_updated == NOW

    def test_export(self):
        service, _ = _service()
        result = service.record_export("PROD-0001", 5, "damaged", user="Kho_Manager")
        movement = result.execution_result.movement
        assert movement.movement_type == MovementType.EXPORT
        assert movement.quantity == -5
        assert movement.user == "Kho_Manager"
        assert service.get_product("PROD-0001").stock == 45

    def test_return(self):
        service, _ = _service()
        result = service.record_return("PROD-0001", 2)
        assert result.execution_result.movement.movement_type == MovementType.RETURN
        assert service.get_product("PROD-0001").stock == 52

    def test_audit_sets_counted_stock(self):
        service, _ = _service()
        result = service.record_audit("PROD-0001", 47, "kiểm kho")
        movement = result.execution_result.movement
        assert movement.quantity == -3
        assert movement.after == 47

    def test_audit_equal_count_records_zero_movement(self):
        service, _ = _service()
        result = service.record_audit("PROD-0001", 50)
        assert result.execution_result.movement.quantity == 0
        assert len(service.get_movements("PROD-0001")) == 2

    @pytest.mark.parametrize("bad", [0, -1, 1.5, True])
    def test_return_and_export_need_positive_quantity(self, bad):
        service, _ = _service()
        with pytest.raises(ValidationError):
            service.record_return("PROD-0001", bad)
        with pytest.raises(ValidationError):
            service.record_export("PROD-0001", bad)

    def test_audit_needs_non_negative_count(self):
        service, _ = _service()
        with pytest.raises(ValidationError):
            service.record_audit("PROD-0001", -1)

    def test_status_follows_stock(self):
        service, _ = _service()
        service.record_export("PROD-0001", 30)
        assert service.get_product("PROD-0001").status == StockStatus.LOW_STOCK
        service.record_export("PROD-0001", 20)
        assert service.get_product("PROD-0001").status == StockStatus.OUT_OF_STOCK

    def test_move_request_validates_quantity_type(self):
        with pytest.raises(ValidationError):
            StockMoveRequest("PROD-0001", MovementType.IMPORT, "10")


# ══════════════════════════════════════════════════════════════
# OVERSELL
# ══════════════════════════════════════════════════════════════

class TestOversellClamp:
    def test_clamp_records_shortfall(self):
        service, _ = _service()

        first = service.apply_movement("PROD-0001", MovementType.SALE, -40)
        second = service.apply_movement("PROD-0001", MovementType.SALE, -15)

        assert first.execution_result.movement.after == 10
        clamped = second.execution_result.movement
        assert second.is_accepted
        assert clamped.before == 10
        assert clamped.after == 0
        assert clamped.quantity == -10
        assert clamped.requested_quantity == -15
        assert clamped.shortfall == 5

        product = service.get_product("PROD-0001")
        assert product.stock == 0
        assert product.status == StockStatus.OUT_OF_STOCK

    def test_deduction_from_zero_stays_zero(self):
        service, _ = _service(_product(stock=0))
        result = service.apply_movement("PROD-0001", MovementType.EXPORT, -3)
        movement = result.execution_result.movement
        assert (movement.before, movement.after, movement.quantity) == (0, 0, 0)
        assert movement.requested_quantity == -3

    def test_policy_resolve(self):
        assert OversellPolicy.CLAMP_TO_ZERO.resolve(10, -15) == 0
        assert OversellPolicy.REJECT.resolve(10, -5) == 5
        with pytest.raises(ValidationError):
            OversellPolicy.REJECT.resolve(10, -15)

    def test_policy_parse(self):
        assert OversellPolicy.parse("reject") is OversellPolicy.REJECT
        with pytest.raises(ValidationError):
            OversellPolicy.parse("BACKORDER")


class TestOversellReject:
    def test_deduction_past_zero_rejected(self):
        service, registry = _service(oversell=OversellPolicy.REJECT)
        heard = []
        registry.subscribe("inventory.stock.move.rejected", heard.append)

        result = service.apply_movement("PROD-0001", MovementType.SALE, -51)

        assert result.is_rejected
        assert result.reason.code == ReasonCode.INSUFFICIENT_STOCK
        assert service.get_product("PROD-0001").stock == 50
        assert len(service.get_movements("PROD-0001")) == 1
        assert len(heard) == 1

    def test_exact_deduction_allowed(self):
        service, _ = _service(oversell=OversellPolicy.REJECT)
        assert service.apply_movement("PROD-0001", MovementType.SALE, -50).is_accepted
        assert service.get_product("PROD-0001").stock == 0


# ══════════════════════════════════════════════════════════════
# UNKNOWN PRODUCT
# ══════════════════════════════════════════════════════════════

class TestUnknownProduct:
    def test_move_rejected_not_raised(self):
        service, registry = _service()
        heard = []
        registry.subscribe("inventory.stock.move.rejected", heard.append)

        result = service.apply_movement("PROD-9999", MovementType.IMPORT, 5)

        assert result.is_rejected
        assert result.reason.code == ReasonCode.NOT_FOUND
        assert "PROD-9999" in result.reason.message
        assert heard[0].payload["original_payload"]["product_id"] == "PROD-9999"
        assert service.store.event_count == 0

    def test_audit_of_unknown_rejected(self):
        service, _ = _service()
        assert service.record_audit("PROD-9999", 10).reason.code == ReasonCode.NOT_FOUND

    def test_require_product_raises(self):
        service, _ = _service()
        with pytest.raises(NotFoundError):
            service.require_product("PROD-9999")
        with pytest.raises(NotFoundError):
            service.get_movements("PROD-9999")


# ══════════════════════════════════════════════════════════════
# IMPORT BATCH
# ══════════════════════════════════════════════════════════════

class TestImportBatch:
    def test_batch_applies_every_line(self):
        service, registry = _service(_product("PROD-0001", 50), _product("PROD-0002", 5))
        heard = []
        registry.subscribe(INVENTORY_STOCK_BATCH_IMPORTED_V1, heard.append)

        result = service.apply_import_batch(
            [{"productId": "PROD-0001", "quantity": 10},
             {"product_id": "PROD-0002", "quantity": 20}],
            note="Nhập lô tháng 5",
        )

        assert result.is_accepted
        batch = result.execution_result
        assert [m.movement_type for m in batch.movements] == [MovementType.IMPORT] * 2
        assert service.get_product("PROD-0001").stock == 60
        assert service.get_product("PROD-0002").stock == 25
        assert {p.product_id for p in batch.products} == {"PROD-0001", "PROD-0002"}
        assert heard[0].payload["movement_ids"] == [m.movement_id for m in batch.movements]

    def test_nested_moves_share_correlation(self):
        service, registry = _service()
        moved = []
        batches = []
        registry.subscribe(INVENTORY_STOCK_MOVED_V1, moved.append)
        registry.subscribe(INVENTORY_STOCK_BATCH_IMPORTED_V1, batches.append)

        service.apply_import_batch([ImportLine("PROD-0001", 3), ImportLine("PROD-0001", 4)])

        assert len(moved) == 2
        assert {e.correlation_id for e in moved} == {batches[0].correlation_id}
        assert service.get_product("PROD-0001").stock == 57

    def test_unknown_product_rejects_whole_batch(self):
        service, _ = _service()

        result = service.apply_import_batch([
            {"product_id": "PROD-0001", "quantity": 10},
            {"product_id": "PROD-7777", "quantity": 1},
            {"product_id": "PROD-8888", "quantity": 1},
        ])

        assert result.is_rejected
        assert result.reason.code == ReasonCode.UNKNOWN_PRODUCT_IN_BATCH
        assert "PROD-7777" in result.reason.message
        assert "PROD-8888" in result.reason.message
        assert service.get_product("PROD-0001").stock == 50
        assert len(service.get_movements()) == 1

    def test_empty_batch_is_noop(self):
        service, _ = _service()
        result = service.apply_import_batch([])
        assert result.is_accepted
        assert result.execution_result.movements == ()
        assert service.get_product("PROD-0001").stock == 50

    @pytest.mark.parametrize("quantity", [0, -4, None])
    def test_bad_line_quantity(self, quantity):
        with pytest.raises(ValidationError):
            ImportBatchRequest.from_items([{"product_id": "PROD-0001", "quantity": quantity}])

    def test_unreadable_line(self):
        with pytest.raises(ValidationError):
            ImportLine.coerce(("PROD-0001", 3))


# ══════════════════════════════════════════════════════════════
# IDS AND FEED
# ══════════════════════════════════════════════════════════════

class TestMovementIdsAndFeed:
    def test_ids_follow_ledger_position(self):
        service, _ = _service()
        service.apply_movement("PROD-0001", MovementType.IMPORT, 1)
        service.apply_movement("PROD-0001", MovementType.SALE, -1)
        ids = [m.movement_id for m in service.get_movements("PROD-0001")]
        assert ids == [
            "MOV-IMPORT-PROD-0001-0001",
            "MOV-IMPORT-PROD-0001-0002",
            "MOV-SALE-PROD-0001-0003",
        ]
        assert len(set(ids)) == len(ids)

    def test_movement_id_format(self):
        assert movement_id_for(MovementType.AUDIT, "PROD-0042", 7) == "MOV-AUDIT-PROD-0042-0007"

    def test_ledger_chain(self):
        service, _ = _service()
        service.apply_movement("PROD-0001", MovementType.IMPORT, 8)
        service.record_export("PROD-0001", 100)
        service.record_return("PROD-0001", 3)
        ledger = service.get_movements("PROD-0001")
        for previous, current in zip(ledger, ledger[1:]):
            assert current.before == previous.after
        assert ledger[-1].after == service.get_product("PROD-0001").stock

    def test_feed_newest_first(self):
        clock = FixedClock(NOW)
        service, _ = _service(_product("PROD-0001"), _product("PROD-0002"), clock=clock)
        service.apply_movement("PROD-0001", MovementType.IMPORT, 1)
        clock.advance(300)
        service.apply_movement("PROD-0002", MovementType.IMPORT, 1)

        feed = service.get_movements()
        assert [m.product_id for m in feed[:2]] == ["PROD-0002", "PROD-0001"]
        assert feed[-1].created_at == OPENED
        assert len(feed) == 4

    def test_same_instant_later_first(self):
        service, _ = _service()
        service.apply_movement("PROD-0001", MovementType.IMPORT, 1)
        service.apply_movement("PROD-0001", MovementType.IMPORT, 2)
        feed = service.get_movements()
        assert feed[0].quantity == 2
        assert feed[1].quantity == 1


# ══════════════════════════════════════════════════════════════
# LISTENERS
# ══════════════════════════════════════════════════════════════

class TestListeners:
    def test_moved_event_payload(self):
        service, registry = _service()
        heard = []
        registry.subscribe(INVENTORY_STOCK_MOVED_V1, heard.append)

        result = service.apply_movement("PROD-0001", MovementType.SALE, -60)

        event = heard[0]
        assert event.payload["movement_id"] == result.execution_result.movement.movement_id
        assert event.payload["quantity"] == -50
        assert event.payload["requested_quantity"] == -60
        assert event.occurred_at == NOW

    def test_failing_listener_keeps_movement(self):
        service, registry = _service()

        def broken(event):
            raise RuntimeError("dashboard refresh failed")

        registry.subscribe(INVENTORY_STOCK_MOVED_V1, broken)
        result = service.apply_movement("PROD-0001", MovementType.IMPORT, 5)

        assert result.is_accepted
        assert service.get_product("PROD-0001").stock == 55

    def test_store_catalog_order(self):
        store = InventoryStore([_product("PROD-0002"), _product("PROD-0001")])
        assert store.product_ids() == ["PROD-0002", "PROD-0001"]
        assert [p.product_id for p in store.list_products()] == store.product_ids()

    def test_store_counts_applied_events(self):
        service, _ = _service()
        service.apply_movement("PROD-0001", MovementType.IMPORT, 5)
        service.apply_movement("PROD-9999", MovementType.IMPORT, 5)
        assert service.store.event_count == 1

    def test_store_rejects_out_of_sequence_payload(self):
        store = InventoryStore([_product()])
        with pytest.raises(ValueError, match="starts at"):
            store.apply(INVENTORY_STOCK_MOVED_V1, {
                "product_id": "PROD-0001",
                "movement_id": "MOV-IMPORT-PROD-0001-0002",
                "movement_type": "IMPORT",
                "quantity": 1,
                "requested_quantity": 1,
                "before": 49,
                "after": 50,
                "note": "",
                "created_at": NOW,
                "user": "Admin",
                "command_id": uuid.uuid4(),
            })
