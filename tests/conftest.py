"""Shared fixtures: a throwaway SQLite database with the demo catalog."""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from storefront.infrastructure.db_schema import metadata
from storefront.infrastructure.unit_of_work import UnitOfWork
from storefront.seed import seed


@pytest.fixture
async def engine(tmp_path):
    # File database: each connection sees the same data, unlike :memory:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    await seed(engine)
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def uow(session_factory):
    return UnitOfWork(session_factory)
