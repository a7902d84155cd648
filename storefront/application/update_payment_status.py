import logging

from storefront.domain.models import OrderStatus, PaymentStatus
from storefront.domain.exceptions import (
    InvalidStatusTransitionError, OrderNotPayableError, PaymentNotFoundError
)

logger = logging.getLogger(__name__)


class UpdatePaymentStatusUseCase:
    """Смена статуса платежа (подтверждение шлюза или администратор).

    completed переводит заказ pending -> paid, refunded отменяет оплаченный
    заказ, failed заказ не трогает: покупатель может оплатить повторно.
    Платеж и заказ меняются в одной транзакции.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, payment_id: int, status: PaymentStatus) -> None:
        async with self._uow() as uow:
            payment = await uow.payments.get_by_id(payment_id)
            if not payment:
                raise PaymentNotFoundError(f"Платеж {payment_id} не найден")

            if not payment.can_transition_to(status):
                raise InvalidStatusTransitionError(
                    f"Переход {payment.status.value} -> {status.value} недопустим для платежа {payment_id}"
                )

            if not await uow.payments.update_status(payment_id, status, from_status=payment.status):
                raise InvalidStatusTransitionError(f"Статус платежа {payment_id} изменился, повторите попытку")

            if status == PaymentStatus.COMPLETED:
                if not await uow.orders.update_status(
                    payment.order_id, OrderStatus.PAID, from_status=OrderStatus.PENDING
                ):
                    raise OrderNotPayableError(f"Заказ {payment.order_id} уже не ожидает оплаты")
            elif status == PaymentStatus.REFUNDED:
                if not await uow.orders.update_status(
                    payment.order_id, OrderStatus.CANCELLED, from_status=OrderStatus.PAID
                ):
                    raise InvalidStatusTransitionError(
                        f"Заказ {payment.order_id} уже передан в доставку, возврат невозможен"
                    )

            await uow.commit()

        logger.info(f"Платеж {payment_id}: {payment.status.value} -> {status.value}, заказ {payment.order_id}")
