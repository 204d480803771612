"""
Backoffice Documents - Tests
==============================
Invoice snapshot, snapshot hashing, export rows.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from core.documents import (
    CUSTOMER_EXPORT_COLUMNS,
    DEFAULT_SELLER,
    ORDER_EXPORT_COLUMNS,
    build_invoice,
    canonical_json,
    compute_snapshot_hash,
    customer_export_rows,
    order_export_rows,
    select_orders,
)
from core.primitives.customer import Customer, MembershipLevel
from core.primitives.order import Order, OrderItem, OrderStatus, StatusLog


NOW = datetime(2024, 5, 17, 9, 0, tzinfo=timezone.utc)


def _order(order_id: str = "ORD-001", status: OrderStatus = OrderStatus.SHIPPED, **overrides) -> Order:
    fields = dict(
        order_id=order_id,
        customer_name="Lê Văn Cường",
        email="cuong@example.com",
        phone="0903000003",
        address="TP.HCM",
        status=status,
        status_history=(StatusLog(status, NOW, "system"),),
        items=(
            OrderItem("PROD-0001", "Áo thun", 350_000, 2, size="M", color="Trắng"),
            OrderItem("PROD-0004", "Đầm Maxi", 950_000, 1, size="S", color="Hồng"),
        ),
        total_amount=1_600_000,
        created_at=NOW,
        discount=50_000,
        discount_code="SALE50K",
    )
    fields.update(overrides)
    return Order(**fields)


class TestSnapshotHash:
    def test_key_order_irrelevant(self):
        assert compute_snapshot_hash({"a": 1, "b": 2}) == compute_snapshot_hash({"b": 2, "a": 1})

    def test_canonical_json_normalises_types(self):
        text = canonical_json({"status": OrderStatus.PENDING, "at": date(2024, 5, 1)})
        assert text == '{"at":"2024-05-01","status":"Pending"}'

    def test_digest_is_lowercase_hex(self):
        digest = compute_snapshot_hash({"x": 1})
        assert len(digest) == 64
        assert digest == digest.lower()
        assert digest != compute_snapshot_hash({"x": 2})


class TestInvoice:
    def test_totals_match_order(self):
        order = _order()
        invoice = build_invoice(order, issued_at=NOW)
        assert invoice.subtotal == 1_650_000
        assert invoice.total == 1_600_000
        assert invoice.matches_order_total(order)

    def test_mismatched_order_detected(self):
        invoice = build_invoice(_order(), issued_at=NOW)
        assert not invoice.matches_order_total(_order(total_amount=1_650_000))

    def test_qr_payload_is_order_id(self):
        invoice = build_invoice(_order(), issued_at=NOW)
        assert invoice.qr_payload == "ORD-001"
        assert invoice.seller == DEFAULT_SELLER

    def test_lines_snapshot_items(self):
        invoice = build_invoice(_order(), issued_at=NOW)
        assert [line.line_total for line in invoice.lines] == [700_000, 950_000]
        assert invoice.to_dict()["lines"][0]["size"] == "M"

    def test_content_hash_stable(self):
        first = build_invoice(_order(), issued_at=NOW)
        second = build_invoice(_order(), issued_at=NOW)
        assert first.content_hash == second.content_hash
        assert first.content_hash != build_invoice(_order(discount=0, total_amount=1_650_000), NOW).content_hash


class TestExportRows:
    def test_order_columns(self):
        rows = order_export_rows([_order()])
        assert tuple(rows[0].keys()) == ORDER_EXPORT_COLUMNS
        assert rows[0]["Amount Paid"] == 1_600_000
        assert rows[0]["Voucher"] == "SALE50K"
        assert rows[0]["Status"] == "Shipped"

    def test_missing_voucher_blank(self):
        row = order_export_rows([_order(discount=0, discount_code=None, total_amount=1_650_000)])[0]
        assert row["Voucher"] == ""
        assert row["Discount"] == 0

    def test_select_orders(self):
        orders = [_order("ORD-001"), _order("ORD-002"), _order("ORD-003")]
        assert select_orders(orders) == orders
        picked = select_orders(orders, ["ORD-003", "ORD-001", "ORD-999"])
        assert [o.order_id for o in picked] == ["ORD-001", "ORD-003"]
        assert select_orders(orders, []) == []

    def test_customer_columns(self):
        customer = Customer(
            customer_id="CUST-0001",
            name="Phạm Thị Dung",
            email="dung@gmail.com",
            phone="0981234567",
            address="TP. Hồ Chí Minh",
            dob=date(1990, 2, 3),
            total_spent=6_000_000,
            order_count=2,
            membership_level=MembershipLevel.GOLD,
            order_ids=("ORD-001", "ORD-002"),
        )
        row = customer_export_rows([customer])[0]
        assert tuple(row.keys()) == CUSTOMER_EXPORT_COLUMNS
        assert row["Date of Birth"] == "1990-02-03"
        assert row["Membership"] == "Gold"
        assert row["Order IDs"] == "ORD-001, ORD-002"
