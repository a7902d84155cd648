import logging
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from storefront.domain.models import OrderLine
from storefront.domain.exceptions import (
    ValidationError, EmptyCartError, InvalidAddressError, ProductUnavailableError, StockConflictError
)


logger = logging.getLogger(__name__)


class PlaceOrderDTO(BaseModel):
    customer_id: int
    address_id: Optional[int] = None


class PlacedOrder(BaseModel):
    order_id: int
    total_price: Decimal


class PlaceOrderUseCase:
    """Оформление заказа из корзины покупателя.

    Все шаги от чтения корзины до ее очистки выполняются в одной транзакции.
    Исключение на любом шаге оставляет unit of work без commit, и БД
    откатывается: заказа нет, остатки не списаны, корзина не тронута.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, data: PlaceOrderDTO) -> PlacedOrder:
        # 1. Валидация входных данных
        if data.address_id is None:
            raise ValidationError("Не указан адрес доставки (address_id)")
        if data.address_id <= 0:
            raise ValidationError("address_id должен быть положительным числом")

        logger.info(f"Оформление заказа для покупателя {data.customer_id}, адрес {data.address_id}")

        async with self._uow() as uow:
            # 2. Адрес и проверка владельца, до обращения к корзине
            address = await uow.addresses.get_by_id(data.address_id)
            if not address or address.customer_id != data.customer_id:
                logger.warning(f"Покупатель {data.customer_id} указал чужой или несуществующий адрес {data.address_id}")
                raise InvalidAddressError()

            # 3. Корзина
            cart = await uow.carts.get_by_customer(data.customer_id)
            if not cart:
                raise EmptyCartError()
            cart_lines = await uow.carts.list_lines(cart.id)
            if not cart_lines:
                raise EmptyCartError()

            # 4. Актуальные цена и остаток по каждой позиции
            order_lines = []
            names = {}
            for line in cart_lines:
                product = await uow.products.get_by_id(line.product_id)
                if not product:
                    raise ProductUnavailableError(line.name, 0, line.quantity)
                if not product.has_stock(line.quantity):
                    raise ProductUnavailableError(product.name, product.stock, line.quantity)
                names[product.id] = product.name
                order_lines.append(
                    OrderLine(
                        product_id=product.id,
                        quantity=line.quantity,
                        line_total=product.price * line.quantity,  # снимок цены
                        product_name=product.name
                    )
                )

            # 5. Сумма заказа
            total_price = sum((line.line_total for line in order_lines), Decimal("0"))

            # 6-7. Заказ и его позиции
            order_id = await uow.orders.create(data.customer_id, data.address_id, total_price)
            await uow.orders.add_lines(order_id, order_lines)

            # 8. Списание остатков, окончательная проверка
            for line in order_lines:
                if not await uow.products.decrement_stock(line.product_id, line.quantity):
                    logger.warning(f"Конфликт остатков по товару {line.product_id} при оформлении заказа {order_id}")
                    raise StockConflictError(names[line.product_id])

            # 9. Очистка корзины
            await uow.carts.clear(cart.id)

            await uow.commit()

        logger.info(f"Заказ {order_id} создан, сумма {total_price}")
        return PlacedOrder(order_id=order_id, total_price=total_price)
