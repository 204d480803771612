"""
Backoffice Bootstrap - Mock Seed Data
=======================================
Deterministic (given a seed) catalog, orders and loyalty customers.

Self-consistency laws the generator keeps:
- every product has one opening IMPORT movement, 0 → stock
- every order item references a catalog product, price snapshot
  equal to the product's selling price
- total_amount = subtotal - discount
- status history walks the fulfillment path up to the order's
  status, so its last entry always matches

Seeded stock is treated as what is on hand after past sales, so
seeded orders carry no sale movements.
"""

from __future__ import annotations

import random
import unicodedata
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

from core.primitives.customer import (
    Customer,
    PurchasedProduct,
    membership_for_spend,
)
from core.primitives.inventory import MovementType, Product, StockMovement
from core.primitives.order import (
    FULFILLMENT_PATH,
    Order,
    OrderItem,
    OrderStatus,
    StatusLog,
)


# ══════════════════════════════════════════════════════════════
# CATALOG TEMPLATES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProductTemplate:
    name: str
    category: str
    cost: int
    price: int
    colors: Tuple[str, ...]
    sizes: Tuple[str, ...]
    image: str


PRODUCT_TEMPLATES: Tuple[ProductTemplate, ...] = (
    ProductTemplate("Áo thun Cotton Premium", "Áo thun", 120000, 350000,
                    ("Trắng", "Đen", "Xám"), ("S", "M", "L", "XL"),
                    "https://images.unsplash.com/photo-1521572267360-ee0c2909d518?w=400"),
    ProductTemplate("Quần Jean Slim Fit", "Quần Jean", 250000, 550000,
                    ("Xanh", "Đen"), ("29", "30", "31", "32"),
                    "https://images.unsplash.com/photo-1542272604-787c3835535d?w=400"),
    ProductTemplate("Sơ mi lụa nam", "Sơ mi", 200000, 500000,
                    ("Trắng", "Xanh nhạt"), ("M", "L", "XL"),
                    "https://images.unsplash.com/photo-1596755094514-f87e34085b2c?w=400"),
    ProductTemplate("Đầm Maxi Voan", "Váy Đầm", 400000, 950000,
                    ("Hồng", "Vàng", "Xanh"), ("S", "M", "L"),
                    "https://images.unsplash.com/photo-1572804013307-5977c143c250?w=400"),
    ProductTemplate("Áo khoác Bomber", "Áo Khoác", 350000, 750000,
                    ("Xanh rêu", "Đen"), ("L", "XL"),
                    "https://images.unsplash.com/photo-1591047139829-d91aecb6caea?w=400"),
    ProductTemplate("Chân váy chữ A", "Váy Đầm", 180000, 420000,
                    ("Nâu", "Đen"), ("S", "M"),
                    "https://images.unsplash.com/photo-1583496661160-fb5886a0aaaa?w=400"),
    ProductTemplate("Áo Hoodie Unisex", "Áo Khoác", 220000, 480000,
                    ("Xám", "Đỏ", "Vàng"), ("M", "L", "XL"),
                    "https://images.unsplash.com/photo-1556821840-3a63f95609a7?w=400"),
    ProductTemplate("Quần Tây Âu Nam", "Quần Tây", 280000, 620000,
                    ("Đen", "Xanh đen"), ("30", "31", "32"),
                    "https://images.unsplash.com/photo-1594633312681-425c7b97ccd1?w=400"),
)

CUSTOMER_NAMES = (
    "Nguyễn Văn An", "Trần Thị Bình", "Lê Văn Cường", "Phạm Thị Dung", "Hoàng Văn Em",
    "Vũ Thị Phương", "Đỗ Văn Giang", "Bùi Thị Hạnh", "Lý Văn Hùng", "Chu Thị Kim",
    "Phan Văn Long", "Đặng Thị Mai", "Ngô Văn Nam", "Trịnh Thị Oanh", "Lương Văn Phúc",
    "Quách Thị Quỳnh", "Tạ Văn Sơn", "Đoàn Thị Thảo", "Hà Văn Uy", "Lâm Thị Xuân",
)

DISCOUNT_CODES = ("FASHION_NEW", "SUMMER2024", "SALE50K", "VIP_MEMBER")
DISCOUNT_AMOUNT = 50000
MIN_STOCK = 20
LOYALTY_CUSTOMER_COUNT = 5

OPENING_IMPORT_AT = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)
OPENING_IMPORT_NOTE = "Nhập hàng đầu mùa"
OPENING_IMPORT_USER = "Kho_Manager"


@dataclass(frozen=True)
class SeedData:
    products: Tuple[Product, ...]
    orders: Tuple[Order, ...]
    customers: Tuple[Customer, ...]


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _ascii_slug(name: str) -> str:
    """'Nguyễn Văn An' → 'nguyen.van.an'"""
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return ".".join(stripped.split())


def sku_for(template: ProductTemplate, index: int) -> str:
    return f"FA-{template.category[:2].upper()}-{1000 + index}"


def _history_for(
    status: OrderStatus,
    created_at: datetime,
    system_actor: str,
    admin_actor: str,
    return_reason: Optional[str],
) -> Tuple[StatusLog, ...]:
    if status is OrderStatus.EXCHANGE_RETURN:
        path = FULFILLMENT_PATH + (OrderStatus.EXCHANGE_RETURN,)
    else:
        path = FULFILLMENT_PATH[: FULFILLMENT_PATH.index(status) + 1]

    history = []
    for step, step_status in enumerate(path):
        history.append(StatusLog(
            status=step_status,
            updated_at=created_at + timedelta(days=step),
            updated_by=system_actor if step == 0 else admin_actor,
            note=return_reason if step_status is OrderStatus.EXCHANGE_RETURN else None,
        ))
    return tuple(history)


# ══════════════════════════════════════════════════════════════
# GENERATORS
# ══════════════════════════════════════════════════════════════

def generate_products(rng: random.Random) -> List[Product]:
    products = []
    for index, template in enumerate(PRODUCT_TEMPLATES):
        product_id = f"PROD-{index + 1:04d}"
        stock = rng.randint(10, 89)
        opening = StockMovement(
            movement_id=f"MOV-{MovementType.IMPORT.value}-{product_id}-0001",
            product_id=product_id,
            movement_type=MovementType.IMPORT,
            quantity=stock,
            before=0,
            after=stock,
            note=OPENING_IMPORT_NOTE,
            created_at=OPENING_IMPORT_AT,
            user=OPENING_IMPORT_USER,
        )
        products.append(Product(
            product_id=product_id,
            name=template.name,
            sku=sku_for(template, index),
            category=template.category,
            stock=stock,
            min_stock=MIN_STOCK,
            cost_price=template.cost,
            selling_price=template.price,
            last_updated=OPENING_IMPORT_AT,
            image=template.image,
            movements=(opening,),
        ))
    return products


def generate_orders(
    rng: random.Random,
    products: List[Product],
    count: int = 40,
    system_actor: str = "system",
    admin_actor: str = "Admin",
) -> List[Order]:
    statuses = list(OrderStatus)
    orders = []
    for index in range(count):
        name = CUSTOMER_NAMES[index % len(CUSTOMER_NAMES)]
        status = rng.choice(statuses)
        created_at = datetime(
            2024, rng.randint(4, 5), rng.randint(1, 28), 10, 0, tzinfo=timezone.utc,
        )

        items = []
        for _ in range(rng.randint(1, 2)):
            slot = rng.randrange(len(products))
            product = products[slot]
            template = PRODUCT_TEMPLATES[slot]
            items.append(OrderItem(
                product_id=product.product_id,
                name=product.name,
                price=product.selling_price,
                quantity=rng.randint(1, 2),
                image=product.image,
                size=rng.choice(template.sizes),
                color=rng.choice(template.colors),
            ))

        subtotal = sum(item.line_total for item in items)
        discount = DISCOUNT_AMOUNT if rng.random() > 0.7 else 0
        discount_code = rng.choice(DISCOUNT_CODES) if discount else None
        return_reason = "Khách đổi size" if status is OrderStatus.EXCHANGE_RETURN else None

        orders.append(Order(
            order_id=f"ORD-{index + 1:03d}",
            customer_name=name,
            email=f"{_ascii_slug(name)}@example.com",
            phone=f"09{rng.randint(10000000, 99999999)}",
            address=f"{rng.randint(1, 500)} Đường Lê Lợi, TP.HCM",
            status=status,
            status_history=_history_for(
                status, created_at, system_actor, admin_actor, return_reason,
            ),
            items=tuple(items),
            total_amount=subtotal - discount,
            created_at=created_at,
            discount=discount,
            discount_code=discount_code,
            note="Giao giờ hành chính" if rng.random() > 0.9 else None,
            return_reason=return_reason,
        ))
    return orders


def generate_customers(rng: random.Random, products: List[Product]) -> List[Customer]:
    featured = products[0]
    customers = []
    for index, name in enumerate(CUSTOMER_NAMES[:LOYALTY_CUSTOMER_COUNT]):
        total_spent = rng.randint(1_000_000, 10_999_999)
        customers.append(Customer(
            customer_id=f"CUST-{index + 1:04d}",
            name=name,
            email=f"{_ascii_slug(name)}@gmail.com",
            phone=f"098{rng.randint(1000000, 9999999)}",
            address="TP. Hồ Chí Minh",
            dob=date(rng.randint(1980, 2002), rng.randint(1, 12), rng.randint(1, 28)),
            total_spent=total_spent,
            order_count=rng.randint(1, 5),
            membership_level=membership_for_spend(total_spent),
            purchased_products=(PurchasedProduct(
                product_id=featured.product_id,
                name=featured.name,
                image=featured.image,
                total_quantity=2,
                last_purchased=date(2024, 5, 1),
            ),),
            order_ids=(f"ORD-{index + 1:03d}",),
            avatar=f"https://i.pravatar.cc/150?u={index}",
        ))
    return customers


def generate_seed(
    seed: Optional[int] = None,
    order_count: int = 40,
    system_actor: str = "system",
    admin_actor: str = "Admin",
) -> SeedData:
    """Same seed → same data. seed=None draws fresh randomness."""
    rng = random.Random(seed)
    products = generate_products(rng)
    orders = generate_orders(rng, products, order_count, system_actor, admin_actor)
    customers = generate_customers(rng, products)
    return SeedData(
        products=tuple(products),
        orders=tuple(orders),
        customers=tuple(customers),
    )
