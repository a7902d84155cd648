from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database import get_db
from storefront.presentation.auth import get_current_customer_id, require_admin
from storefront.presentation.schemas import (
    PlaceOrderRequest, PlaceOrderResponse, OrderResponse, UpdateOrderStatusRequest,
    RecordPaymentRequest, RecordPaymentResponse, PaymentResponse, UpdatePaymentStatusRequest,
    CartItemRequest, CartItemQuantityRequest, CartResponse, ProductResponse,
    MessageResponse, ErrorResponse
)
from storefront.application.place_order import PlaceOrderUseCase, PlaceOrderDTO
from storefront.application.record_payment import RecordPaymentUseCase, RecordPaymentDTO
from storefront.application.get_order import GetOrderUseCase, ListMyOrdersUseCase, ListOrdersUseCase
from storefront.application.update_order_status import UpdateOrderStatusUseCase
from storefront.application.get_payment import GetPaymentUseCase, GetOrderPaymentsUseCase, ListMyPaymentsUseCase
from storefront.application.update_payment_status import UpdatePaymentStatusUseCase
from storefront.application.manage_cart import (
    GetCartUseCase, AddToCartUseCase, UpdateCartItemUseCase, RemoveCartItemUseCase, ClearCartUseCase
)
from storefront.application.browse_catalog import ListProductsUseCase, GetProductUseCase
from storefront.domain.models import OrderStatus, ProductFilters
from storefront.domain.exceptions import (
    ValidationError, EmptyCartError, InvalidAddressError, ProductUnavailableError, StockConflictError,
    ProductNotFoundError, CartItemNotFoundError, OrderNotFoundError, OrderNotPayableError,
    AmountMismatchError, InvalidStatusTransitionError, PaymentNotFoundError, StorageError
)
from storefront.infrastructure.unit_of_work import UnitOfWork

router = APIRouter()

STORAGE_ERROR_DETAIL = "Внутренняя ошибка сервера, попробуйте позже"


def get_unit_of_work(db: AsyncSession = Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(lambda: db)


def storage_error() -> HTTPException:
    # Подробности уже залогированы в UnitOfWork, клиенту отдаем общий текст
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=STORAGE_ERROR_DETAIL)


# Заказы

@router.post(
    "/orders",
    response_model=PlaceOrderResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def place_order(
    request: PlaceOrderRequest,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Оформить заказ из корзины"""
    try:
        placed = await PlaceOrderUseCase(uow)(
            PlaceOrderDTO(customer_id=customer_id, address_id=request.address_id)
        )
        return PlaceOrderResponse(order_id=placed.order_id, total_price=placed.total_price)

    except (ValidationError, EmptyCartError, InvalidAddressError, ProductUnavailableError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StockConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError:
        raise storage_error()


@router.get("/orders", response_model=List[OrderResponse])
async def list_my_orders(
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """История заказов покупателя"""
    try:
        orders = await ListMyOrdersUseCase(uow)(customer_id)
        return [OrderResponse.from_domain(order) for order in orders]
    except StorageError:
        raise storage_error()


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: int,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Получить заказ по ID"""
    try:
        order = await GetOrderUseCase(uow)(order_id, customer_id=customer_id)
        return OrderResponse.from_domain(order)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Заказ не найден")
    except StorageError:
        raise storage_error()


@router.get(
    "/orders/{order_id}/payments",
    response_model=List[PaymentResponse],
    responses={404: {"model": ErrorResponse}}
)
async def get_order_payments(
    order_id: int,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        # Проверка владельца заказа
        await GetOrderUseCase(uow)(order_id, customer_id=customer_id)
        payments = await GetOrderPaymentsUseCase(uow)(order_id)
        return [PaymentResponse(**payment.model_dump()) for payment in payments]
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Заказ не найден")
    except StorageError:
        raise storage_error()


# Платежи

@router.post(
    "/payments",
    response_model=RecordPaymentResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def record_payment(
    request: RecordPaymentRequest,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Зарегистрировать платеж по заказу"""
    try:
        dto = RecordPaymentDTO(
            order_id=request.order_id,
            method=request.method,
            status=request.status,
            amount_paid=request.amount_paid,
            transaction_id=request.transaction_id,
            customer_id=customer_id
        )
        payment_id = await RecordPaymentUseCase(uow)(dto)
        return RecordPaymentResponse(payment_id=payment_id)

    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Заказ не найден")
    except AmountMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotPayableError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError:
        raise storage_error()


@router.get("/payments/me", response_model=List[PaymentResponse])
async def list_my_payments(
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """История платежей покупателя"""
    try:
        payments = await ListMyPaymentsUseCase(uow)(customer_id)
        return [PaymentResponse(**payment.model_dump()) for payment in payments]
    except StorageError:
        raise storage_error()


@router.get(
    "/payments/{payment_id}",
    response_model=PaymentResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_payment(
    payment_id: int,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        payment = await GetPaymentUseCase(uow)(payment_id)
        await GetOrderUseCase(uow)(payment.order_id, customer_id=customer_id)
        return PaymentResponse(**payment.model_dump())
    except (PaymentNotFoundError, OrderNotFoundError):
        raise HTTPException(status_code=404, detail="Платеж не найден")
    except StorageError:
        raise storage_error()


# Корзина

@router.get("/cart", response_model=CartResponse)
async def get_cart(
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        view = await GetCartUseCase(uow)(customer_id)
        return CartResponse.from_view(view)
    except StorageError:
        raise storage_error()


@router.post(
    "/cart/items",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def add_cart_item(
    request: CartItemRequest,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await AddToCartUseCase(uow)(customer_id, request.product_id, request.quantity)
        return MessageResponse(message="Товар добавлен в корзину")
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ValidationError, ProductUnavailableError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError:
        raise storage_error()


@router.patch(
    "/cart/items/{product_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def update_cart_item(
    product_id: int,
    request: CartItemQuantityRequest,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await UpdateCartItemUseCase(uow)(customer_id, product_id, request.quantity)
        return MessageResponse(message="Корзина обновлена")
    except (ProductNotFoundError, CartItemNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ValidationError, ProductUnavailableError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError:
        raise storage_error()


@router.delete(
    "/cart/items/{product_id}",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}}
)
async def remove_cart_item(
    product_id: int,
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await RemoveCartItemUseCase(uow)(customer_id, product_id)
        return MessageResponse(message="Товар удален из корзины")
    except CartItemNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError:
        raise storage_error()


@router.delete("/cart", response_model=MessageResponse)
async def clear_cart(
    customer_id: int = Depends(get_current_customer_id),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await ClearCartUseCase(uow)(customer_id)
        return MessageResponse(message="Корзина очищена")
    except StorageError:
        raise storage_error()


# Каталог

@router.get("/products", response_model=List[ProductResponse], responses={400: {"model": ErrorResponse}})
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[Decimal] = Query(default=None, ge=0),
    max_price: Optional[Decimal] = Query(default=None, ge=0),
    in_stock: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Каталог с фильтрами"""
    filters = ProductFilters(
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        limit=limit,
        offset=offset
    )
    try:
        products = await ListProductsUseCase(uow)(filters)
        return [ProductResponse(**product.model_dump()) for product in products]
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError:
        raise storage_error()


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_product(product_id: int, uow: UnitOfWork = Depends(get_unit_of_work)):
    try:
        product = await GetProductUseCase(uow)(product_id)
        return ProductResponse(**product.model_dump())
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError:
        raise storage_error()


# Администрирование

@router.get("/admin/orders", response_model=List[OrderResponse], dependencies=[Depends(require_admin)])
async def list_orders(
    order_status: Optional[OrderStatus] = Query(default=None, alias="status"),
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    """Все заказы, опционально по статусу"""
    try:
        orders = await ListOrdersUseCase(uow)(order_status)
        return [OrderResponse.from_domain(order) for order in orders]
    except StorageError:
        raise storage_error()


@router.patch(
    "/admin/orders/{order_id}/status",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)]
)
async def update_order_status(
    order_id: int,
    request: UpdateOrderStatusRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await UpdateOrderStatusUseCase(uow)(order_id, request.status)
        return MessageResponse(message=f"Статус заказа изменен на {request.status.value}")
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Заказ не найден")
    except InvalidStatusTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError:
        raise storage_error()


@router.patch(
    "/admin/payments/{payment_id}/status",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)]
)
async def update_payment_status(
    payment_id: int,
    request: UpdatePaymentStatusRequest,
    uow: UnitOfWork = Depends(get_unit_of_work)
):
    try:
        await UpdatePaymentStatusUseCase(uow)(payment_id, request.status)
        return MessageResponse(message=f"Статус платежа изменен на {request.status.value}")
    except PaymentNotFoundError:
        raise HTTPException(status_code=404, detail="Платеж не найден")
    except (InvalidStatusTransitionError, OrderNotPayableError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageError:
        raise storage_error()
