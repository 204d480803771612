"""
Backoffice Documents - Invoice Snapshot
=========================================
The data a printed invoice consumes. Layout and QR image rendering
belong to the presentation layer; this module only fixes the numbers.

    subtotal = Σ price × quantity
    total    = subtotal - discount
    qr_payload = order_id (what the scanner decodes back)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from core.documents.hashing import compute_snapshot_hash
from core.primitives.order import Order


@dataclass(frozen=True)
class SellerInfo:
    name: str = "FashionAdmin Pro"
    tagline: str = "Cửa hàng thời trang phong cách quốc tế"
    address: str = "123 Đường Thời Trang, Quận 1, TP. Hồ Chí Minh"
    hotline: str = "1900 8888"
    website: str = "fashionadmin.pro"
    email: str = "support@fashionadmin.pro"


DEFAULT_SELLER = SellerInfo()


@dataclass(frozen=True)
class InvoiceLine:
    product_id: str
    name: str
    size: str
    color: str
    unit_price: int
    quantity: int

    @property
    def line_total(self) -> int:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Invoice:
    order_id: str
    issued_at: datetime
    seller: SellerInfo
    customer_name: str
    phone: str
    email: str
    address: str
    status: str
    lines: Tuple[InvoiceLine, ...]
    discount: int
    discount_code: Optional[str]
    note: Optional[str]
    qr_payload: str = field(default="")

    def __post_init__(self):
        if not self.qr_payload:
            object.__setattr__(self, "qr_payload", self.order_id)

    @property
    def subtotal(self) -> int:
        return sum(line.line_total for line in self.lines)

    @property
    def total(self) -> int:
        return self.subtotal - self.discount

    def matches_order_total(self, order: Order) -> bool:
        """The printed total agrees with the stored order total."""
        return self.order_id == order.order_id and self.total == order.total_amount

    def to_dict(self) -> dict:
        return {
            "order_id": self.order_id,
            "issued_at": self.issued_at,
            "seller": {
                "name": self.seller.name,
                "tagline": self.seller.tagline,
                "address": self.seller.address,
                "hotline": self.seller.hotline,
                "website": self.seller.website,
                "email": self.seller.email,
            },
            "customer": {
                "name": self.customer_name,
                "phone": self.phone,
                "email": self.email,
                "address": self.address,
            },
            "status": self.status,
            "lines": [
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "size": line.size,
                    "color": line.color,
                    "unit_price": line.unit_price,
                    "quantity": line.quantity,
                    "line_total": line.line_total,
                }
                for line in self.lines
            ],
            "subtotal": self.subtotal,
            "discount": self.discount,
            "discount_code": self.discount_code,
            "total": self.total,
            "note": self.note,
            "qr_payload": self.qr_payload,
        }

    @property
    def content_hash(self) -> str:
        return compute_snapshot_hash(self.to_dict())


def build_invoice(
    order: Order,
    issued_at: datetime,
    seller: SellerInfo = DEFAULT_SELLER,
) -> Invoice:
    return Invoice(
        order_id=order.order_id,
        issued_at=issued_at,
        seller=seller,
        customer_name=order.customer_name,
        phone=order.phone,
        email=order.email,
        address=order.address,
        status=order.status.value,
        lines=tuple(
            InvoiceLine(
                product_id=item.product_id,
                name=item.name,
                size=item.size,
                color=item.color,
                unit_price=item.price,
                quantity=item.quantity,
            )
            for item in order.items
        ),
        discount=order.discount,
        discount_code=order.discount_code,
        note=order.note,
    )
