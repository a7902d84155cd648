class DomainException(Exception):
    pass


class ValidationError(DomainException):
    pass


class EmptyCartError(DomainException):
    def __init__(self):
        super().__init__("Корзина пуста")


class InvalidAddressError(DomainException):
    """Адрес не найден или принадлежит другому покупателю: причины не различаем"""

    def __init__(self):
        super().__init__("Адрес доставки не найден или не принадлежит вам")


class ProductNotFoundError(DomainException):
    pass


class ProductUnavailableError(DomainException):
    def __init__(self, product_name: str, available: int, requested: int):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Недостаточно товара \"{product_name}\". Доступно: {available}, требуется: {requested}"
        )


class StockConflictError(DomainException):
    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(
            f"Остаток товара \"{product_name}\" изменился во время оформления заказа, повторите попытку"
        )


class CartItemNotFoundError(DomainException):
    pass


class OrderNotFoundError(DomainException):
    pass


class OrderNotPayableError(DomainException):
    pass


class InvalidStatusTransitionError(DomainException):
    pass


class AmountMismatchError(DomainException):
    def __init__(self, expected, received):
        self.expected = expected
        self.received = received
        super().__init__(f"Сумма платежа не совпадает с суммой заказа. Ожидается: {expected}, получено: {received}")


class PaymentNotFoundError(DomainException):
    pass


class StorageError(DomainException):
    pass
