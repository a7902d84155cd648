import logging

from storefront.domain.models import OrderStatus
from storefront.domain.exceptions import OrderNotFoundError, InvalidStatusTransitionError

logger = logging.getLogger(__name__)


class UpdateOrderStatusUseCase:
    """Смена статуса заказа администратором"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int, status: OrderStatus) -> None:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")

            if not order.can_transition_to(status):
                raise InvalidStatusTransitionError(
                    f"Переход {order.status.value} -> {status.value} недопустим для заказа {order_id}"
                )

            if not await uow.orders.update_status(order_id, status, from_status=order.status):
                raise InvalidStatusTransitionError(f"Статус заказа {order_id} изменился, повторите попытку")
            await uow.commit()

        logger.info(f"Заказ {order_id}: {order.status.value} -> {status.value}")
