import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from storefront.config import settings
from storefront import database
from storefront.infrastructure.db_schema import metadata
from storefront.presentation.api import router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    if database.engine is not None and settings.CREATE_TABLES_ON_STARTUP:
        async with database.engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("Таблицы созданы")

    yield

    logger.info("Приложение останавливается...")
    if database.engine is not None:
        await database.engine.dispose()


app = FastAPI(
    title="Stay Awake Coffee",
    description="Витрина магазина: каталог, корзина, заказы и платежи",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Некорректный запрос: 400 вместо 422"""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = f"Некорректные данные: {field}: {first.get('msg', '')}" if field else "Некорректные данные"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


@app.get("/")
async def root():
    return {"message": "Stay Awake Coffee API работает"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
