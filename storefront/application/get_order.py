from typing import List, Optional

from storefront.domain.models import Order, OrderStatus
from storefront.domain.exceptions import OrderNotFoundError


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int, customer_id: Optional[int] = None) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            # Чужой заказ для покупателя выглядит так же, как несуществующий
            if not order or (customer_id is not None and order.customer_id != customer_id):
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            return order


class ListMyOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list_by_customer(customer_id)


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, status: Optional[OrderStatus] = None) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list_by_status(status)
