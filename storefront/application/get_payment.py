from typing import List

from storefront.domain.models import Payment
from storefront.domain.exceptions import OrderNotFoundError, PaymentNotFoundError


class GetPaymentUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, payment_id: int) -> Payment:
        async with self._uow() as uow:
            payment = await uow.payments.get_by_id(payment_id)
            if not payment:
                raise PaymentNotFoundError(f"Платеж {payment_id} не найден")
            return payment


class GetOrderPaymentsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: int) -> List[Payment]:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            return await uow.payments.list_by_order(order_id)


class ListMyPaymentsUseCase:
    """История платежей покупателя по всем его заказам"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> List[Payment]:
        async with self._uow() as uow:
            return await uow.payments.list_by_customer(customer_id)
