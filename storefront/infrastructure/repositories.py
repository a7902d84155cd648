from collections import defaultdict
from decimal import Decimal
from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.models import (
    Address, Cart, CartLine, Order, OrderLine, OrderStatus, Payment, PaymentStatus, Product, ProductFilters
)
from storefront.infrastructure.db_schema import (
    addresses_tbl, carts_tbl, cart_items_tbl, categories_tbl, orders_tbl, order_items_tbl,
    payments_tbl, products_tbl, product_categories_tbl
)
from storefront.application.interfaces import (
    AddressRepository, CartRepository, OrderRepository, PaymentRepository, ProductRepository
)


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        if not row:
            return None
        categories = await self._categories_for([row.id])
        return self._to_domain(row, categories[row.id])

    async def list(self, filters: ProductFilters) -> List[Product]:
        stmt = select(products_tbl)

        if filters.category:
            stmt = (
                stmt.join(product_categories_tbl, product_categories_tbl.c.product_id == products_tbl.c.id)
                .join(categories_tbl, categories_tbl.c.id == product_categories_tbl.c.category_id)
                .where(func.lower(categories_tbl.c.name) == filters.category.lower())
            )
        if filters.search:
            stmt = stmt.where(products_tbl.c.name.ilike(f"%{filters.search}%"))
        if filters.min_price is not None:
            stmt = stmt.where(products_tbl.c.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(products_tbl.c.price <= filters.max_price)
        if filters.in_stock:
            stmt = stmt.where(products_tbl.c.stock > 0)

        stmt = stmt.order_by(products_tbl.c.id.asc()).limit(filters.limit).offset(filters.offset)
        rows = (await self._session.execute(stmt)).fetchall()

        categories = await self._categories_for([row.id for row in rows])
        return [self._to_domain(row, categories[row.id]) for row in rows]

    async def decrement_stock(self, product_id: int, amount: int) -> bool:
        # Условие stock >= amount проверяется той же командой UPDATE,
        # поэтому параллельные заказы не уводят остаток в минус
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product_id,
                products_tbl.c.stock >= amount
            )
            .values(stock=products_tbl.c.stock - amount)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def _categories_for(self, product_ids: List[int]) -> dict:
        categories = defaultdict(list)
        if not product_ids:
            return categories
        result = await self._session.execute(
            select(product_categories_tbl.c.product_id, categories_tbl.c.name)
            .join(categories_tbl, categories_tbl.c.id == product_categories_tbl.c.category_id)
            .where(product_categories_tbl.c.product_id.in_(product_ids))
            .order_by(categories_tbl.c.name.asc())
        )
        for row in result.fetchall():
            categories[row.product_id].append(row.name)
        return categories

    def _to_domain(self, row, categories: List[str]) -> Product:
        """Трансформация DB → Domain"""
        return Product(
            id=row.id,
            name=row.name,
            description=row.description,
            price=Decimal(row.price),
            stock=row.stock,
            image=row.image,
            categories=categories
        )


class SQLAlchemyCartRepository(CartRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_customer(self, customer_id: int) -> Optional[Cart]:
        result = await self._session.execute(
            select(carts_tbl).where(carts_tbl.c.customer_id == customer_id)
        )
        row = result.fetchone()
        return Cart(id=row.id, customer_id=row.customer_id) if row else None

    async def get_or_create(self, customer_id: int) -> Cart:
        cart = await self.get_by_customer(customer_id)
        if cart:
            return cart
        result = await self._session.execute(
            insert(carts_tbl).values(customer_id=customer_id)
        )
        return Cart(id=result.inserted_primary_key[0], customer_id=customer_id)

    async def list_lines(self, cart_id: int) -> List[CartLine]:
        result = await self._session.execute(
            self._lines_query().where(cart_items_tbl.c.cart_id == cart_id).order_by(cart_items_tbl.c.id.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def find_line(self, cart_id: int, product_id: int) -> Optional[CartLine]:
        result = await self._session.execute(
            self._lines_query().where(
                cart_items_tbl.c.cart_id == cart_id,
                cart_items_tbl.c.product_id == product_id
            )
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def add_line(self, cart_id: int, product_id: int, quantity: int) -> None:
        await self._session.execute(
            insert(cart_items_tbl).values(cart_id=cart_id, product_id=product_id, quantity=quantity)
        )

    async def update_line_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        stmt = (
            update(cart_items_tbl)
            .where(
                cart_items_tbl.c.cart_id == cart_id,
                cart_items_tbl.c.product_id == product_id
            )
            .values(quantity=quantity)
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def remove_line(self, cart_id: int, product_id: int) -> bool:
        result = await self._session.execute(
            delete(cart_items_tbl).where(
                cart_items_tbl.c.cart_id == cart_id,
                cart_items_tbl.c.product_id == product_id
            )
        )
        return result.rowcount > 0

    async def clear(self, cart_id: int) -> bool:
        result = await self._session.execute(
            delete(cart_items_tbl).where(cart_items_tbl.c.cart_id == cart_id)
        )
        return result.rowcount > 0

    @staticmethod
    def _lines_query():
        return (
            select(
                cart_items_tbl.c.product_id,
                cart_items_tbl.c.quantity,
                products_tbl.c.name,
                products_tbl.c.price,
                products_tbl.c.stock
            )
            .join(products_tbl, products_tbl.c.id == cart_items_tbl.c.product_id)
        )

    def _to_domain(self, row) -> CartLine:
        return CartLine(
            product_id=row.product_id,
            quantity=row.quantity,
            name=row.name,
            price=Decimal(row.price),
            stock=row.stock
        )


class SQLAlchemyAddressRepository(AddressRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, address_id: int) -> Optional[Address]:
        result = await self._session.execute(
            select(addresses_tbl).where(addresses_tbl.c.id == address_id)
        )
        row = result.fetchone()
        return to_address(row) if row else None


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, customer_id: int, address_id: int, total_price: Decimal) -> int:
        now = datetime.now(timezone.utc)
        stmt = insert(orders_tbl).values(
            customer_id=customer_id,
            address_id=address_id,
            total_price=total_price,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now
        )
        result = await self._session.execute(stmt)
        return result.inserted_primary_key[0]

    async def add_lines(self, order_id: int, lines: List[OrderLine]) -> None:
        if not lines:
            return
        # Один INSERT на все позиции
        await self._session.execute(
            insert(order_items_tbl),
            [
                {
                    "order_id": order_id,
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "total_price": line.line_total
                }
                for line in lines
            ]
        )

    async def update_status(
        self, order_id: int, status: OrderStatus, from_status: Optional[OrderStatus] = None
    ) -> bool:
        criteria = [orders_tbl.c.id == order_id]
        if from_status is not None:
            # Проверка текущего статуса в той же команде UPDATE
            criteria.append(orders_tbl.c.status == from_status)
        stmt = (
            update(orders_tbl)
            .where(*criteria)
            .values(
                status=status,
                updated_at=datetime.now(timezone.utc)
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None

        lines = await self._lines_for([row.id])
        address_row = (
            await self._session.execute(select(addresses_tbl).where(addresses_tbl.c.id == row.address_id))
        ).fetchone()
        order = self._to_domain(row, lines[row.id])
        order.address = to_address(address_row) if address_row else None
        return order

    async def list_by_customer(self, customer_id: int) -> List[Order]:
        return await self._list(orders_tbl.c.customer_id == customer_id)

    async def list_by_status(self, status: Optional[OrderStatus] = None) -> List[Order]:
        if status is None:
            return await self._list()
        return await self._list(orders_tbl.c.status == status)

    async def _list(self, *criteria) -> List[Order]:
        result = await self._session.execute(
            select(orders_tbl)
            .where(*criteria)
            .order_by(orders_tbl.c.created_at.desc(), orders_tbl.c.id.desc())
        )
        rows = result.fetchall()
        lines = await self._lines_for([row.id for row in rows])
        return [self._to_domain(row, lines[row.id]) for row in rows]

    async def _lines_for(self, order_ids: List[int]) -> dict:
        lines = defaultdict(list)
        if not order_ids:
            return lines
        result = await self._session.execute(
            select(
                order_items_tbl.c.order_id,
                order_items_tbl.c.product_id,
                order_items_tbl.c.quantity,
                order_items_tbl.c.total_price,
                products_tbl.c.name
            )
            .join(products_tbl, products_tbl.c.id == order_items_tbl.c.product_id, isouter=True)
            .where(order_items_tbl.c.order_id.in_(order_ids))
            .order_by(order_items_tbl.c.id.asc())
        )
        for row in result.fetchall():
            lines[row.order_id].append(
                OrderLine(
                    product_id=row.product_id,
                    quantity=row.quantity,
                    line_total=Decimal(row.total_price),
                    product_name=row.name
                )
            )
        return lines

    def _to_domain(self, row, lines: List[OrderLine]) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            customer_id=row.customer_id,
            address_id=row.address_id,
            total_price=Decimal(row.total_price),
            status=OrderStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
            lines=lines
        )


class SQLAlchemyPaymentRepository(PaymentRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        order_id: int,
        method: str,
        status: PaymentStatus,
        amount_paid: Decimal,
        transaction_id: Optional[str] = None
    ) -> int:
        stmt = insert(payments_tbl).values(
            order_id=order_id,
            method=method,
            status=status,
            transaction_id=transaction_id,
            amount_paid=amount_paid,
            paid_at=datetime.now(timezone.utc)
        )
        result = await self._session.execute(stmt)
        return result.inserted_primary_key[0]

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        result = await self._session.execute(
            select(payments_tbl).where(payments_tbl.c.id == payment_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_by_order(self, order_id: int) -> List[Payment]:
        result = await self._session.execute(
            select(payments_tbl)
            .where(payments_tbl.c.order_id == order_id)
            .order_by(payments_tbl.c.paid_at.asc(), payments_tbl.c.id.asc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def list_by_customer(self, customer_id: int) -> List[Payment]:
        result = await self._session.execute(
            select(payments_tbl)
            .join(orders_tbl, orders_tbl.c.id == payments_tbl.c.order_id)
            .where(orders_tbl.c.customer_id == customer_id)
            .order_by(payments_tbl.c.paid_at.desc(), payments_tbl.c.id.desc())
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def update_status(
        self, payment_id: int, status: PaymentStatus, from_status: Optional[PaymentStatus] = None
    ) -> bool:
        criteria = [payments_tbl.c.id == payment_id]
        if from_status is not None:
            criteria.append(payments_tbl.c.status == from_status)
        result = await self._session.execute(
            update(payments_tbl).where(*criteria).values(status=status)
        )
        return result.rowcount > 0

    def _to_domain(self, row) -> Payment:
        return Payment(
            id=row.id,
            order_id=row.order_id,
            method=row.method,
            status=PaymentStatus(row.status),
            transaction_id=row.transaction_id,
            amount_paid=Decimal(row.amount_paid),
            paid_at=row.paid_at
        )


def to_address(row) -> Address:
    return Address(
        id=row.id,
        customer_id=row.customer_id,
        phone=row.phone,
        street=row.street,
        city=row.city,
        postal_code=row.postal_code
    )
