import logging
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.domain.exceptions import StorageError
from storefront.infrastructure.repositories import (
    SQLAlchemyAddressRepository,
    SQLAlchemyCartRepository,
    SQLAlchemyOrderRepository,
    SQLAlchemyPaymentRepository,
    SQLAlchemyProductRepository
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                # Создаем реализацию с репозиториями
                uow_impl = _UnitOfWorkImpl(session)
                yield uow_impl  # Отдаем внутреннюю реализацию
                # Если commit не вызван, откатываем
                await session.rollback()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.exception(f"Ошибка работы с БД: {e}")
                raise StorageError("Ошибка хранилища данных") from e
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.products = SQLAlchemyProductRepository(session)
        self.carts = SQLAlchemyCartRepository(session)
        self.addresses = SQLAlchemyAddressRepository(session)
        self.orders = SQLAlchemyOrderRepository(session)
        self.payments = SQLAlchemyPaymentRepository(session)

    async def commit(self):
        await self._session.commit()

    async def rollback(self):
        await self._session.rollback()
