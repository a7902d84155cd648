"""Загрузка демо-данных магазина: покупатели, адреса, категории, товары.

Запуск: python -m storefront.seed
"""
import asyncio
import logging
from decimal import Decimal
from sqlalchemy import insert, select

from storefront import database
from storefront.infrastructure.db_schema import (
    metadata, customers_tbl, addresses_tbl, categories_tbl, products_tbl, product_categories_tbl
)

logger = logging.getLogger(__name__)

CUSTOMERS = [
    {"name": "Alice Johnson", "email": "alice@example.com", "role": "user"},
    {"name": "Bob Smith", "email": "bob@example.com", "role": "user"},
    {"name": "Charlie Admin", "email": "charlie.admin@example.com", "role": "admin"},
]

ADDRESSES = [
    {"customer_id": 1, "phone": "081234567890", "street": "Jl. Merdeka No. 10", "city": "Jakarta", "postal_code": "10110"},
    {"customer_id": 1, "phone": "081234567891", "street": "Jl. Sudirman No. 5", "city": "Jakarta", "postal_code": "10220"},
    {"customer_id": 2, "phone": "082345678901", "street": "Jl. Diponegoro No. 12", "city": "Bandung", "postal_code": "40115"},
    {"customer_id": 3, "phone": "083456789012", "street": "Jl. Pahlawan No. 9", "city": "Surabaya", "postal_code": "60213"},
]

CATEGORIES = ["Coffee", "Tea", "Merchandise", "Accessories", "Kitchen Appliances"]

# (название, описание, цена, картинка, остаток, категории)
PRODUCTS = [
    ("Arabica Coffee Beans", "Premium Arabica coffee beans, 500g.", "150000.00", "arabica.jpg", 50, ["Coffee"]),
    ("Green Tea Loose Leaf", "Organic green tea from Japan, 200g.", "80000.00", "greentea.jpg", 100, ["Tea"]),
    ("Stay Awake Mug", "Ceramic coffee mug with logo.", "75000.00", "mug.jpg", 150, ["Merchandise"]),
    ("Coffee Grinder", "Manual hand grinder for coffee.", "300000.00", "grinder.jpg", 30, ["Accessories", "Coffee"]),
    ("Espresso Machine", "High-end espresso machine for home use.", "3500000.00", "espresso_machine.jpg", 10, ["Kitchen Appliances"]),
    ("Tea Pot", "Glass tea pot with infuser, 1L.", "200000.00", "teapot.jpg", 50, ["Tea", "Accessories"]),
    ("Coffee Beans Storage Jar", "Airtight jar for coffee storage.", "150000.00", "storage_jar.jpg", 200, ["Accessories"]),
    ("Electric Kettle", "Fast boiling electric kettle, 1.7L.", "250000.00", "electric_kettle.jpg", 80, ["Kitchen Appliances"]),
    ("Tea Infuser", "Stainless steel tea infuser for loose leaf tea.", "30000.00", "infuser.jpg", 300, ["Tea", "Accessories"]),
    ("Coffee Cups Set", "Set of 4 ceramic coffee cups.", "120000.00", "coffee_cups.jpg", 70, ["Merchandise"]),
]


async def seed(engine) -> bool:
    """Заполняет пустую БД. Возвращает False, если данные уже есть."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

        existing = await conn.execute(select(customers_tbl.c.id).limit(1))
        if existing.fetchone():
            logger.info("Демо-данные уже загружены")
            return False

        await conn.execute(insert(customers_tbl), CUSTOMERS)
        await conn.execute(insert(addresses_tbl), ADDRESSES)
        await conn.execute(insert(categories_tbl), [{"name": name} for name in CATEGORIES])

        category_ids = {
            row.name: row.id
            for row in (await conn.execute(select(categories_tbl.c.id, categories_tbl.c.name))).fetchall()
        }
        for name, description, price, image, stock, categories in PRODUCTS:
            result = await conn.execute(
                insert(products_tbl).values(
                    name=name, description=description, price=Decimal(price), image=image, stock=stock
                )
            )
            product_id = result.inserted_primary_key[0]
            await conn.execute(
                insert(product_categories_tbl),
                [{"product_id": product_id, "category_id": category_ids[c]} for c in categories]
            )

    logger.info(f"Загружено: {len(CUSTOMERS)} покупателей, {len(PRODUCTS)} товаров")
    return True


async def main():
    if database.engine is None:
        raise SystemExit("DATABASE_URL не задан")
    try:
        await seed(database.engine)
    finally:
        await database.engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    asyncio.run(main())
