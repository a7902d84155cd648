from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from storefront.domain.models import OrderStatus, PaymentStatus


class RequestModel(BaseModel):
    """Принимает и snake_case, и camelCase (addressId, amountPaid)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceOrderRequest(RequestModel):
    # Отсутствие адреса проверяет use case
    address_id: Optional[int] = None


class PlaceOrderResponse(BaseModel):
    order_id: int
    total_price: Decimal


class AddressResponse(BaseModel):
    id: int
    phone: str
    street: str
    city: str
    postal_code: str


class OrderLineResponse(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    line_total: Decimal


class OrderResponse(BaseModel):
    id: int
    customer_id: int
    address_id: int
    total_price: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    lines: List[OrderLineResponse]
    address: Optional[AddressResponse] = None

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            address_id=order.address_id,
            total_price=order.total_price,
            status=order.status,
            created_at=order.created_at,
            updated_at=order.updated_at,
            lines=[
                OrderLineResponse(
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    line_total=line.line_total
                )
                for line in order.lines
            ],
            address=AddressResponse(**order.address.model_dump(exclude={"customer_id"})) if order.address else None
        )


class UpdateOrderStatusRequest(RequestModel):
    status: OrderStatus


class RecordPaymentRequest(RequestModel):
    order_id: int
    method: str = Field(min_length=2, max_length=50)
    status: PaymentStatus = PaymentStatus.PENDING
    # 0 допустим: заказ из бесплатных товаров оплачивается нулевой суммой
    amount_paid: Decimal = Field(ge=0, decimal_places=2)
    transaction_id: Optional[str] = Field(default=None, max_length=255)


class UpdatePaymentStatusRequest(RequestModel):
    status: PaymentStatus


class RecordPaymentResponse(BaseModel):
    payment_id: int


class PaymentResponse(BaseModel):
    id: int
    order_id: int
    method: str
    status: PaymentStatus
    transaction_id: Optional[str] = None
    amount_paid: Decimal
    paid_at: datetime


class CartItemRequest(RequestModel):
    product_id: int
    quantity: int = 1


class CartItemQuantityRequest(RequestModel):
    quantity: int


class CartLineResponse(BaseModel):
    product_id: int
    name: str
    price: Decimal
    quantity: int
    stock: int
    line_total: Decimal


class CartResponse(BaseModel):
    cart_id: int
    lines: List[CartLineResponse]
    total_price: Decimal

    @classmethod
    def from_view(cls, view):
        return cls(
            cart_id=view.cart_id,
            lines=[
                CartLineResponse(
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    stock=line.stock,
                    line_total=line.line_total
                )
                for line in view.lines
            ],
            total_price=view.total_price
        )


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    stock: int
    image: Optional[str] = None
    categories: List[str] = []


class MessageResponse(BaseModel):
    status: str = "ok"
    message: str


class ErrorResponse(BaseModel):
    detail: str
