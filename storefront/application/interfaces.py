from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, List

from storefront.domain.models import (
    Address, Cart, CartLine, Order, OrderLine, OrderStatus, Payment, PaymentStatus, Product, ProductFilters
)


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    async def list(self, filters: ProductFilters) -> List[Product]:
        pass

    @abstractmethod
    async def decrement_stock(self, product_id: int, amount: int) -> bool:
        """Условное списание: stock = stock - amount WHERE stock >= amount"""
        pass


class CartRepository(ABC):
    @abstractmethod
    async def get_by_customer(self, customer_id: int) -> Optional[Cart]:
        pass

    @abstractmethod
    async def get_or_create(self, customer_id: int) -> Cart:
        pass

    @abstractmethod
    async def list_lines(self, cart_id: int) -> List[CartLine]:
        pass

    @abstractmethod
    async def find_line(self, cart_id: int, product_id: int) -> Optional[CartLine]:
        pass

    @abstractmethod
    async def add_line(self, cart_id: int, product_id: int, quantity: int) -> None:
        pass

    @abstractmethod
    async def update_line_quantity(self, cart_id: int, product_id: int, quantity: int) -> bool:
        pass

    @abstractmethod
    async def remove_line(self, cart_id: int, product_id: int) -> bool:
        pass

    @abstractmethod
    async def clear(self, cart_id: int) -> bool:
        pass


class AddressRepository(ABC):
    @abstractmethod
    async def get_by_id(self, address_id: int) -> Optional[Address]:
        pass


class OrderRepository(ABC):
    @abstractmethod
    async def create(self, customer_id: int, address_id: int, total_price: Decimal) -> int:
        pass

    @abstractmethod
    async def add_lines(self, order_id: int, lines: List[OrderLine]) -> None:
        pass

    @abstractmethod
    async def update_status(
        self, order_id: int, status: OrderStatus, from_status: Optional[OrderStatus] = None
    ) -> bool:
        """Если задан from_status, статус меняется только из него (UPDATE ... WHERE status = from_status)"""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_customer(self, customer_id: int) -> List[Order]:
        pass

    @abstractmethod
    async def list_by_status(self, status: Optional[OrderStatus] = None) -> List[Order]:
        pass


class PaymentRepository(ABC):
    @abstractmethod
    async def create(
        self,
        order_id: int,
        method: str,
        status: PaymentStatus,
        amount_paid: Decimal,
        transaction_id: Optional[str] = None
    ) -> int:
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        pass

    @abstractmethod
    async def list_by_order(self, order_id: int) -> List[Payment]:
        pass

    @abstractmethod
    async def list_by_customer(self, customer_id: int) -> List[Payment]:
        pass

    @abstractmethod
    async def update_status(
        self, payment_id: int, status: PaymentStatus, from_status: Optional[PaymentStatus] = None
    ) -> bool:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def products(self) -> ProductRepository:
        pass

    @property
    @abstractmethod
    def carts(self) -> CartRepository:
        pass

    @property
    @abstractmethod
    def addresses(self) -> AddressRepository:
        pass

    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @property
    @abstractmethod
    def payments(self) -> PaymentRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
