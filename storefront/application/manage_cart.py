import logging
from decimal import Decimal
from typing import List
from pydantic import BaseModel

from storefront.domain.models import CartLine
from storefront.domain.exceptions import (
    ValidationError, ProductNotFoundError, ProductUnavailableError, CartItemNotFoundError
)

logger = logging.getLogger(__name__)


class CartView(BaseModel):
    cart_id: int
    lines: List[CartLine]
    total_price: Decimal


class GetCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> CartView:
        async with self._uow() as uow:
            cart = await uow.carts.get_or_create(customer_id)
            lines = await uow.carts.list_lines(cart.id)
            # Корзина могла быть создана только что
            await uow.commit()

        total = sum((line.line_total for line in lines), Decimal("0"))
        return CartView(cart_id=cart.id, lines=lines, total_price=total)


class AddToCartUseCase:
    """Добавить товар в корзину; если он уже есть, увеличить количество"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, product_id: int, quantity: int) -> None:
        if quantity < 1:
            raise ValidationError("Количество должно быть не меньше 1")

        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Товар {product_id} не найден")

            cart = await uow.carts.get_or_create(customer_id)
            existing = await uow.carts.find_line(cart.id, product_id)
            new_quantity = quantity + (existing.quantity if existing else 0)

            if not product.has_stock(new_quantity):
                raise ProductUnavailableError(product.name, product.stock, new_quantity)

            if existing:
                await uow.carts.update_line_quantity(cart.id, product_id, new_quantity)
            else:
                await uow.carts.add_line(cart.id, product_id, new_quantity)
            await uow.commit()

        logger.info(f"Корзина {cart.id}: товар {product_id}, количество {new_quantity}")


class UpdateCartItemUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, product_id: int, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Количество не может быть отрицательным")

        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Товар {product_id} не найден")

            cart = await uow.carts.get_or_create(customer_id)
            if not await uow.carts.find_line(cart.id, product_id):
                raise CartItemNotFoundError(f"Товара {product_id} нет в корзине")

            # Количество 0 означает удаление позиции
            if quantity == 0:
                await uow.carts.remove_line(cart.id, product_id)
            else:
                if not product.has_stock(quantity):
                    raise ProductUnavailableError(product.name, product.stock, quantity)
                await uow.carts.update_line_quantity(cart.id, product_id, quantity)
            await uow.commit()


class RemoveCartItemUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int, product_id: int) -> None:
        async with self._uow() as uow:
            cart = await uow.carts.get_or_create(customer_id)
            if not await uow.carts.remove_line(cart.id, product_id):
                raise CartItemNotFoundError(f"Товара {product_id} нет в корзине")
            await uow.commit()


class ClearCartUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, customer_id: int) -> None:
        async with self._uow() as uow:
            cart = await uow.carts.get_or_create(customer_id)
            if not await uow.carts.clear(cart.id):
                logger.warning(f"Корзина {cart.id} уже была пуста")
            await uow.commit()
