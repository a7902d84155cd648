from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Допустимые переходы статусов заказа
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Допустимые переходы статусов платежа
PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED, PaymentStatus.FAILED},
    PaymentStatus.COMPLETED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}


class Product(BaseModel):
    """Domain Entity: товар каталога"""
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    image: Optional[str] = None
    categories: List[str] = []

    def has_stock(self, quantity: int) -> bool:
        return self.stock >= quantity


class CartLine(BaseModel):
    """Строка корзины, обогащенная текущими данными товара"""
    product_id: int
    quantity: int
    name: str
    price: Decimal
    stock: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Cart(BaseModel):
    id: int
    customer_id: int


class Address(BaseModel):
    """Value Object: адрес доставки покупателя"""
    id: int
    customer_id: int
    phone: str
    street: str
    city: str
    postal_code: str


class OrderLine(BaseModel):
    product_id: int
    quantity: int
    line_total: Decimal
    product_name: Optional[str] = None


class Order(BaseModel):
    """Domain Entity: заказ"""
    id: int
    customer_id: int
    address_id: int
    total_price: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    lines: List[OrderLine] = []
    address: Optional[Address] = None

    def can_be_paid(self) -> bool:
        """Бизнес-правило: оплатить можно только заказ в статусе pending"""
        return self.status == OrderStatus.PENDING

    def can_transition_to(self, status: OrderStatus) -> bool:
        return status in ORDER_TRANSITIONS[self.status]


class Payment(BaseModel):
    """Domain Entity: платеж по заказу"""
    id: int
    order_id: int
    method: str
    status: PaymentStatus
    transaction_id: Optional[str] = None
    amount_paid: Decimal
    paid_at: datetime

    def can_transition_to(self, status: PaymentStatus) -> bool:
        return status in PAYMENT_TRANSITIONS[self.status]


class ProductFilters(BaseModel):
    """Фильтры каталога"""
    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    in_stock: bool = False
    limit: int = 50
    offset: int = 0
