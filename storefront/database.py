from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.config import settings


def create_engine(url: str = None):
    return create_async_engine(url or settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_pre_ping=True)


def create_session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


engine = create_engine() if settings.DATABASE_URL else None
AsyncSessionLocal = create_session_factory(engine) if engine else None


async def get_db():
    if AsyncSessionLocal is None:
        raise RuntimeError("DATABASE_URL не задан")
    async with AsyncSessionLocal() as session:
        yield session
