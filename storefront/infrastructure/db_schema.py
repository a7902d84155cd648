from sqlalchemy import (
    Table, Column, String, Integer, Numeric, DateTime, Text, Enum, MetaData, ForeignKey,
    CheckConstraint, UniqueConstraint
)
from sqlalchemy.sql import func

from storefront.domain.models import OrderStatus, PaymentStatus

metadata = MetaData()


def _enum(enum_cls, name):
    # В БД храним значения ("pending"), а не имена членов ("PENDING")
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])


customers_tbl = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), unique=True, nullable=False),
    Column("role", String(20), nullable=False, default="user"),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


addresses_tbl = Table(
    "addresses",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("phone", String(20), nullable=False),
    Column("street", String(255), nullable=False),
    Column("city", String(100), nullable=False),
    Column("postal_code", String(10), nullable=False)
)


categories_tbl = Table(
    "categories",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), unique=True, nullable=False)
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=True),
    Column("price", Numeric(12, 2), nullable=False),
    Column("stock", Integer, nullable=False, default=0),
    Column("image", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    CheckConstraint("price >= 0", name="ck_products_price_non_negative")
)


product_categories_tbl = Table(
    "product_categories",
    metadata,
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", Integer, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True)
)


carts_tbl = Table(
    "carts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), unique=True, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


cart_items_tbl = Table(
    "cart_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("cart_id", Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False),
    Column("quantity", Integer, nullable=False),
    UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive")
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=False, index=True),
    Column("address_id", Integer, ForeignKey("addresses.id"), nullable=False),
    Column("total_price", Numeric(12, 2), nullable=False),
    Column("status", _enum(OrderStatus, "order_status"), nullable=False, default=OrderStatus.PENDING),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False)
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("total_price", Numeric(12, 2), nullable=False)
)


payments_tbl = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("method", String(50), nullable=False),
    Column("status", _enum(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING),
    Column("transaction_id", String(255), nullable=True),
    Column("amount_paid", Numeric(12, 2), nullable=False),
    Column("paid_at", DateTime(timezone=True), nullable=False)
)
