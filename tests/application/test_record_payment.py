from decimal import Decimal

import pytest

from storefront.application.get_payment import GetOrderPaymentsUseCase, GetPaymentUseCase, ListMyPaymentsUseCase
from storefront.application.place_order import PlaceOrderUseCase, PlaceOrderDTO
from storefront.application.record_payment import RecordPaymentUseCase, RecordPaymentDTO
from storefront.application.update_payment_status import UpdatePaymentStatusUseCase
from storefront.domain.exceptions import (
    AmountMismatchError, InvalidStatusTransitionError, OrderNotFoundError, OrderNotPayableError,
    PaymentNotFoundError
)
from storefront.domain.models import OrderStatus, PaymentStatus, Product
from tests.fakes import FakeOrderRepository, FakeUnitOfWork, make_store, put_in_cart


async def _placed_order():
    """Store with one pending order of 300000.00 for customer 1."""
    store = make_store()
    uow = FakeUnitOfWork(store)
    put_in_cart(store, 1, 1, 2)
    placed = await PlaceOrderUseCase(uow)(PlaceOrderDTO(customer_id=1, address_id=1))
    return RecordPaymentUseCase(uow), store, uow, placed.order_id


def _dto(order_id, amount="300000.00", status=PaymentStatus.COMPLETED, **kwargs):
    return RecordPaymentDTO(
        order_id=order_id,
        method="bank_transfer",
        status=status,
        amount_paid=Decimal(amount),
        **kwargs
    )


class TestRecordPayment:

    async def test_completed_payment_marks_order_paid(self):
        record_payment, store, _, order_id = await _placed_order()

        payment_id = await record_payment(_dto(order_id, transaction_id="TRX-001"))

        payment = store.payments[payment_id]
        assert payment.amount_paid == Decimal("300000.00")
        assert payment.transaction_id == "TRX-001"
        assert store.orders[order_id].status == OrderStatus.PAID

    async def test_pending_payment_keeps_order_pending(self):
        record_payment, store, _, order_id = await _placed_order()

        await record_payment(_dto(order_id, status=PaymentStatus.PENDING))

        assert store.orders[order_id].status == OrderStatus.PENDING
        assert len(store.payments) == 1

    async def test_unknown_order(self):
        record_payment, _, _, _ = await _placed_order()
        with pytest.raises(OrderNotFoundError):
            await record_payment(_dto(404))

    async def test_foreign_order_looks_missing(self):
        record_payment, store, _, order_id = await _placed_order()
        with pytest.raises(OrderNotFoundError):
            await record_payment(_dto(order_id, customer_id=2))
        assert store.payments == {}


class TestAmountExactness:

    async def test_one_cent_short(self):
        record_payment, store, _, order_id = await _placed_order()
        with pytest.raises(AmountMismatchError) as exc_info:
            await record_payment(_dto(order_id, amount="299999.99"))
        assert exc_info.value.expected == Decimal("300000.00")
        assert store.payments == {}
        assert store.orders[order_id].status == OrderStatus.PENDING

    async def test_overpayment(self):
        record_payment, _, _, order_id = await _placed_order()
        with pytest.raises(AmountMismatchError):
            await record_payment(_dto(order_id, amount="300000.01"))

    async def test_scale_does_not_matter(self):
        record_payment, store, _, order_id = await _placed_order()
        await record_payment(_dto(order_id, amount="300000"))
        assert store.orders[order_id].status == OrderStatus.PAID


class TestSecondPayment:

    async def test_paid_order_rejects_another_payment(self):
        record_payment, store, _, order_id = await _placed_order()
        await record_payment(_dto(order_id))

        with pytest.raises(OrderNotPayableError):
            await record_payment(_dto(order_id))
        assert len(store.payments) == 1

    async def test_retry_after_failed_payment(self):
        record_payment, store, _, order_id = await _placed_order()
        await record_payment(_dto(order_id, status=PaymentStatus.FAILED))
        await record_payment(_dto(order_id))

        assert len(store.payments) == 2
        assert store.orders[order_id].status == OrderStatus.PAID

    async def test_cancelled_order_rejects_payment(self):
        record_payment, store, _, order_id = await _placed_order()
        store.orders[order_id].status = OrderStatus.CANCELLED
        with pytest.raises(OrderNotPayableError):
            await record_payment(_dto(order_id))


class TestPaymentLookup:

    async def test_get_payment(self):
        record_payment, _, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id))

        payment = await GetPaymentUseCase(uow)(payment_id)
        assert payment.order_id == order_id
        assert payment.status == PaymentStatus.COMPLETED

    async def test_get_missing_payment(self):
        _, _, uow, _ = await _placed_order()
        with pytest.raises(PaymentNotFoundError):
            await GetPaymentUseCase(uow)(42)

    async def test_payments_of_order(self):
        record_payment, _, uow, order_id = await _placed_order()
        await record_payment(_dto(order_id, status=PaymentStatus.FAILED))
        await record_payment(_dto(order_id))

        payments = await GetOrderPaymentsUseCase(uow)(order_id)
        assert [p.status for p in payments] == [PaymentStatus.FAILED, PaymentStatus.COMPLETED]

    async def test_payments_of_missing_order(self):
        _, _, uow, _ = await _placed_order()
        with pytest.raises(OrderNotFoundError):
            await GetOrderPaymentsUseCase(uow)(404)


class TestPaymentRace:

    async def test_order_paid_after_read_rejects_payment(self, monkeypatch):
        """The order is read as pending but another request has already paid it."""
        record_payment, store, _, order_id = await _placed_order()
        store.orders[order_id].status = OrderStatus.PAID

        original = FakeOrderRepository.get_by_id

        async def stale_get_by_id(self, order_id):
            order = await original(self, order_id)
            order.status = OrderStatus.PENDING
            return order

        monkeypatch.setattr(FakeOrderRepository, "get_by_id", stale_get_by_id)

        with pytest.raises(OrderNotPayableError):
            await record_payment(_dto(order_id))
        assert store.payments == {}

    async def test_pending_payment_does_not_claim_the_order(self):
        record_payment, store, _, order_id = await _placed_order()
        await record_payment(_dto(order_id, status=PaymentStatus.PENDING))
        await record_payment(_dto(order_id))

        assert [p.status for p in store.payments.values()] == [PaymentStatus.PENDING, PaymentStatus.COMPLETED]
        assert store.orders[order_id].status == OrderStatus.PAID


class TestZeroTotalOrder:

    async def test_free_order_is_paid_with_zero(self):
        store = make_store()
        store.products[4] = Product(id=4, name="Sticker Pack", price=Decimal("0.00"), stock=10)
        uow = FakeUnitOfWork(store)
        put_in_cart(store, 1, 4, 3)
        placed = await PlaceOrderUseCase(uow)(PlaceOrderDTO(customer_id=1, address_id=1))

        await RecordPaymentUseCase(uow)(_dto(placed.order_id, amount="0.00"))

        assert placed.total_price == Decimal("0")
        assert store.orders[placed.order_id].status == OrderStatus.PAID


class TestUpdatePaymentStatus:

    async def test_completing_pending_payment_pays_order(self):
        record_payment, store, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id, status=PaymentStatus.PENDING))

        await UpdatePaymentStatusUseCase(uow)(payment_id, PaymentStatus.COMPLETED)

        assert store.payments[payment_id].status == PaymentStatus.COMPLETED
        assert store.orders[order_id].status == OrderStatus.PAID

    async def test_failed_payment_keeps_order_payable(self):
        record_payment, store, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id, status=PaymentStatus.PENDING))

        await UpdatePaymentStatusUseCase(uow)(payment_id, PaymentStatus.FAILED)
        await record_payment(_dto(order_id))

        assert store.payments[payment_id].status == PaymentStatus.FAILED
        assert store.orders[order_id].status == OrderStatus.PAID

    async def test_refund_cancels_paid_order(self):
        record_payment, store, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id))

        await UpdatePaymentStatusUseCase(uow)(payment_id, PaymentStatus.REFUNDED)

        assert store.payments[payment_id].status == PaymentStatus.REFUNDED
        assert store.orders[order_id].status == OrderStatus.CANCELLED

    async def test_refund_after_shipping_is_rejected(self):
        record_payment, store, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id))
        store.orders[order_id].status = OrderStatus.SHIPPED

        with pytest.raises(InvalidStatusTransitionError):
            await UpdatePaymentStatusUseCase(uow)(payment_id, PaymentStatus.REFUNDED)
        assert store.payments[payment_id].status == PaymentStatus.COMPLETED
        assert store.orders[order_id].status == OrderStatus.SHIPPED

    async def test_second_completion_is_rejected(self):
        record_payment, store, uow, order_id = await _placed_order()
        first = await record_payment(_dto(order_id, status=PaymentStatus.PENDING))
        second = await record_payment(_dto(order_id, status=PaymentStatus.PENDING))
        update_status = UpdatePaymentStatusUseCase(uow)

        await update_status(first, PaymentStatus.COMPLETED)
        with pytest.raises(OrderNotPayableError):
            await update_status(second, PaymentStatus.COMPLETED)
        assert store.payments[second].status == PaymentStatus.PENDING

    async def test_failed_is_final(self):
        record_payment, _, uow, order_id = await _placed_order()
        payment_id = await record_payment(_dto(order_id, status=PaymentStatus.FAILED))
        with pytest.raises(InvalidStatusTransitionError):
            await UpdatePaymentStatusUseCase(uow)(payment_id, PaymentStatus.COMPLETED)

    async def test_missing_payment(self):
        _, _, uow, _ = await _placed_order()
        with pytest.raises(PaymentNotFoundError):
            await UpdatePaymentStatusUseCase(uow)(42, PaymentStatus.COMPLETED)


class TestListMyPayments:

    async def test_only_own_payments_newest_first(self):
        record_payment, store, uow, order_id = await _placed_order()
        failed = await record_payment(_dto(order_id, status=PaymentStatus.FAILED))
        completed = await record_payment(_dto(order_id))

        mine = await ListMyPaymentsUseCase(uow)(1)

        assert [p.id for p in mine] == [completed, failed]
        assert await ListMyPaymentsUseCase(uow)(2) == []
