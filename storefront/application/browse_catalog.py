from typing import List

from storefront.domain.models import Product, ProductFilters
from storefront.domain.exceptions import ProductNotFoundError, ValidationError


class ListProductsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, filters: ProductFilters) -> List[Product]:
        if (
            filters.min_price is not None
            and filters.max_price is not None
            and filters.min_price > filters.max_price
        ):
            raise ValidationError("min_price не может быть больше max_price")

        async with self._uow() as uow:
            return await uow.products.list(filters)


class GetProductUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, product_id: int) -> Product:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Товар {product_id} не найден")
            return product
