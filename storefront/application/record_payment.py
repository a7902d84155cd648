import logging
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from storefront.domain.models import OrderStatus, PaymentStatus
from storefront.domain.exceptions import OrderNotFoundError, OrderNotPayableError, AmountMismatchError

logger = logging.getLogger(__name__)


class RecordPaymentDTO(BaseModel):
    order_id: int
    method: str
    status: PaymentStatus = PaymentStatus.PENDING
    amount_paid: Decimal
    transaction_id: Optional[str] = None
    # Если задан, чужой заказ считается ненайденным
    customer_id: Optional[int] = None


class RecordPaymentUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, dto: RecordPaymentDTO) -> int:
        logger.info(f"Регистрация платежа по заказу {dto.order_id}: {dto.method}, {dto.status.value}, {dto.amount_paid}")

        async with self._uow() as uow:
            order = await uow.orders.get_by_id(dto.order_id)
            if not order or (dto.customer_id is not None and order.customer_id != dto.customer_id):
                raise OrderNotFoundError(f"Заказ {dto.order_id} не найден")

            # Повторная оплата оплаченного, отправленного или отмененного заказа запрещена
            if not order.can_be_paid():
                raise OrderNotPayableError(
                    f"Заказ {order.id} в статусе {order.status.value} не может принять новый платеж"
                )

            # Точное сравнение Decimal, без допусков
            if dto.amount_paid != order.total_price:
                raise AmountMismatchError(order.total_price, dto.amount_paid)

            if dto.status == PaymentStatus.COMPLETED:
                # Статус мог смениться после чтения: переводим в PAID только из PENDING
                if not await uow.orders.update_status(order.id, OrderStatus.PAID, from_status=OrderStatus.PENDING):
                    logger.warning(f"Заказ {order.id} уже оплачен параллельным запросом")
                    raise OrderNotPayableError(f"Заказ {order.id} уже не ожидает оплаты")
                logger.info(f"Заказ {order.id} отмечен PAID")

            payment_id = await uow.payments.create(
                order_id=order.id,
                method=dto.method,
                status=dto.status,
                amount_paid=dto.amount_paid,
                transaction_id=dto.transaction_id
            )

            await uow.commit()

        logger.info(f"Платеж {payment_id} по заказу {dto.order_id} сохранен")
        return payment_id
