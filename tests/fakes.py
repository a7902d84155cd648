"""In-memory fakes for use case tests.

Repositories implement the same ABCs as the SQLAlchemy ones. The unit of
work snapshots the whole store on enter and restores it unless commit()
was called, which is what a database transaction gives us.
"""

import copy
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from storefront.application.interfaces import (
    AddressRepository, CartRepository, OrderRepository, PaymentRepository, ProductRepository
)
from storefront.domain.models import (
    Address, Cart, CartLine, Order, OrderLine, OrderStatus, Payment, PaymentStatus, Product, ProductFilters
)


class FakeStore:

    def __init__(self) -> None:
        self.products: Dict[int, Product] = {}
        self.addresses: Dict[int, Address] = {}
        self.carts: Dict[int, Cart] = {}                    # customer_id -> cart
        self.cart_lines: Dict[int, Dict[int, int]] = {}     # cart_id -> {product_id: qty}
        self.orders: Dict[int, Order] = {}
        self.payments: Dict[int, Payment] = {}
        self.next_ids: Dict[str, int] = {"cart": 1, "order": 1, "payment": 1}
        # Stock a concurrent checkout already took: visible to decrement, not to reads
        self.hidden_sales: Dict[int, int] = {}

    def snapshot(self) -> dict:
        return copy.deepcopy({k: v for k, v in self.__dict__.items() if k != "hidden_sales"})

    def restore(self, state: dict) -> None:
        self.__dict__.update(state)

    def next_id(self, kind: str) -> int:
        value = self.next_ids[kind]
        self.next_ids[kind] += 1
        return value


class FakeProductRepository(ProductRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        product = self._store.products.get(product_id)
        return product.model_copy() if product else None

    async def list(self, filters: ProductFilters) -> List[Product]:
        result = []
        for product in sorted(self._store.products.values(), key=lambda p: p.id):
            if filters.category and filters.category.lower() not in [c.lower() for c in product.categories]:
                continue
            if filters.search and filters.search.lower() not in product.name.lower():
                continue
            if filters.min_price is not None and product.price < filters.min_price:
                continue
            if filters.max_price is not None and product.price > filters.max_price:
                continue
            if filters.in_stock and product.stock <= 0:
                continue
            result.append(product.model_copy())
        return result[filters.offset:filters.offset + filters.limit]

    async def decrement_stock(self, product_id: int, amount: int) -> bool:
        product = self._store.products.get(product_id)
        if not product:
            return False
        available = product.stock - self._store.hidden_sales.get(product_id, 0)
        if available < amount:
            return False
        product.stock -= amount
        return True


class FakeCartRepository(CartRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_customer(self, customer_id: int) -> Optional[Cart]:
        return self._store.carts.get(customer_id)

    async def get_or_create(self, customer_id: int) -> Cart:
        cart = self._store.carts.get(customer_id)
        if not cart:
            cart = Cart(id=self._store.next_id("cart"), customer_id=customer_id)
            self._store.carts[customer_id] = cart
            self._store.cart_lines[cart.id] = {}
        return cart

    async def list_lines(self, cart_id: int) -> List[CartLine]:
        return [self._line(pid, qty) for pid, qty in self._store.cart_lines.get(cart_id, {}).items()]

    async def find_line(self, cart_id: int, product_id: int) -> Optional[CartLine]:
        qty = self._store.cart_lines.get(cart_id, {}).get(product_id)
        return self._line(product_id, qty) if qty else None

    async def add_line(self, cart_id: int, product_id: int, quantity: int) -> None:
        lines = self._store.cart_lines.setdefault(cart_id, {})
        assert product_id not in lines, "duplicate cart line"
        lines[product_id] = quantity

    async def update_line_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        lines = self._store.cart_lines.get(cart_id, {})
        if product_id not in lines:
            return False
        lines[product_id] = quantity
        return True

    async def remove_line(self, cart_id: int, product_id: int) -> bool:
        return self._store.cart_lines.get(cart_id, {}).pop(product_id, None) is not None

    async def clear(self, cart_id: int) -> bool:
        had_lines = bool(self._store.cart_lines.get(cart_id))
        self._store.cart_lines[cart_id] = {}
        return had_lines

    def _line(self, product_id: int, quantity: int) -> CartLine:
        product = self._store.products[product_id]
        return CartLine(
            product_id=product_id,
            quantity=quantity,
            name=product.name,
            price=product.price,
            stock=product.stock
        )


class FakeAddressRepository(AddressRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def get_by_id(self, address_id: int) -> Optional[Address]:
        return self._store.addresses.get(address_id)


class FakeOrderRepository(OrderRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def create(self, customer_id: int, address_id: int, total_price: Decimal) -> int:
        now = datetime.now(timezone.utc)
        order_id = self._store.next_id("order")
        self._store.orders[order_id] = Order(
            id=order_id,
            customer_id=customer_id,
            address_id=address_id,
            total_price=total_price,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now
        )
        return order_id

    async def add_lines(self, order_id: int, lines: List[OrderLine]) -> None:
        self._store.orders[order_id].lines.extend(line.model_copy() for line in lines)

    async def update_status(
        self, order_id: int, status: OrderStatus, from_status: Optional[OrderStatus] = None
    ) -> bool:
        order = self._store.orders.get(order_id)
        if not order or (from_status is not None and order.status != from_status):
            return False
        order.status = status
        order.updated_at = datetime.now(timezone.utc)
        return True

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        order = self._store.orders.get(order_id)
        if not order:
            return None
        result = order.model_copy(deep=True)
        result.address = self._store.addresses.get(order.address_id)
        return result

    async def list_by_customer(self, customer_id: int) -> List[Order]:
        return [o.model_copy(deep=True) for o in self._store.orders.values() if o.customer_id == customer_id]

    async def list_by_status(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return [
            o.model_copy(deep=True) for o in self._store.orders.values()
            if status is None or o.status == status
        ]


class FakePaymentRepository(PaymentRepository):

    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def create(
        self,
        order_id: int,
        method: str,
        status: PaymentStatus,
        amount_paid: Decimal,
        transaction_id: Optional[str] = None
    ) -> int:
        payment_id = self._store.next_id("payment")
        self._store.payments[payment_id] = Payment(
            id=payment_id,
            order_id=order_id,
            method=method,
            status=status,
            transaction_id=transaction_id,
            amount_paid=amount_paid,
            paid_at=datetime.now(timezone.utc)
        )
        return payment_id

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        payment = self._store.payments.get(payment_id)
        return payment.model_copy() if payment else None

    async def list_by_order(self, order_id: int) -> List[Payment]:
        return [p.model_copy() for p in self._store.payments.values() if p.order_id == order_id]

    async def list_by_customer(self, customer_id: int) -> List[Payment]:
        return [
            p.model_copy() for p in reversed(list(self._store.payments.values()))
            if self._store.orders[p.order_id].customer_id == customer_id
        ]

    async def update_status(
        self, payment_id: int, status: PaymentStatus, from_status: Optional[PaymentStatus] = None
    ) -> bool:
        payment = self._store.payments.get(payment_id)
        if not payment or (from_status is not None and payment.status != from_status):
            return False
        payment.status = status
        return True


class _FakeUnitOfWorkImpl:

    def __init__(self, store: FakeStore) -> None:
        self.products = FakeProductRepository(store)
        self.carts = FakeCartRepository(store)
        self.addresses = FakeAddressRepository(store)
        self.orders = FakeOrderRepository(store)
        self.payments = FakePaymentRepository(store)
        self.committed = False

    async def commit(self):
        self.committed = True

    async def rollback(self):
        self.committed = False


class FakeUnitOfWork:

    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.commits = 0

    @asynccontextmanager
    async def __call__(self):
        state = self.store.snapshot()
        impl = _FakeUnitOfWorkImpl(self.store)
        try:
            yield impl
        except Exception:
            self.store.restore(state)
            raise
        if impl.committed:
            self.commits += 1
        else:
            self.store.restore(state)


def make_store() -> FakeStore:
    """Coffee shop fixture data: two customers, three products."""
    store = FakeStore()
    store.products = {
        1: Product(id=1, name="Arabica Coffee Beans", price=Decimal("150000.00"), stock=50, categories=["Coffee"]),
        2: Product(id=2, name="Stay Awake Mug", price=Decimal("75000.00"), stock=150, categories=["Merchandise"]),
        3: Product(id=3, name="Espresso Machine", price=Decimal("3500000.00"), stock=1,
                   categories=["Kitchen Appliances"]),
    }
    store.addresses = {
        1: Address(id=1, customer_id=1, phone="081234567890", street="Jl. Merdeka No. 10",
                   city="Jakarta", postal_code="10110"),
        2: Address(id=2, customer_id=2, phone="082345678901", street="Jl. Diponegoro No. 12",
                   city="Bandung", postal_code="40115"),
    }
    return store


def put_in_cart(store: FakeStore, customer_id: int, product_id: int, quantity: int) -> Cart:
    cart = store.carts.get(customer_id)
    if not cart:
        cart = Cart(id=store.next_id("cart"), customer_id=customer_id)
        store.carts[customer_id] = cart
        store.cart_lines[cart.id] = {}
    store.cart_lines[cart.id][product_id] = quantity
    return cart
