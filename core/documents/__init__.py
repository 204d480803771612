"""
Backoffice Documents - Public API
===================================
"""

from core.documents.export import (
    CUSTOMER_EXPORT_COLUMNS,
    ORDER_EXPORT_COLUMNS,
    customer_export_rows,
    order_export_rows,
    select_orders,
)
from core.documents.hashing import (
    canonical_json,
    compute_snapshot_hash,
)
from core.documents.invoice import (
    DEFAULT_SELLER,
    Invoice,
    InvoiceLine,
    SellerInfo,
    build_invoice,
)

__all__ = [
    "CUSTOMER_EXPORT_COLUMNS",
    "ORDER_EXPORT_COLUMNS",
    "customer_export_rows",
    "order_export_rows",
    "select_orders",
    "canonical_json",
    "compute_snapshot_hash",
    "DEFAULT_SELLER",
    "Invoice",
    "InvoiceLine",
    "SellerInfo",
    "build_invoice",
]
