import asyncio
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository
from storefront.database import AsyncSessionLocal, init_db
from storefront.models import Product, Store, Inventory

logger = logging.getLogger(__name__)

async def seed_catalog(session: AsyncSession) -> bool:
    """Insert demo stores, products and stock. Returns False if already seeded."""
    if await repository.find_store_by_name("Downtown", session):
        logger.info("Catalog already seeded.")
        return False

    downtown = Store(name="Downtown", address="12 Main Street")
    airport = Store(name="Airport", address="Terminal 2, Gate B")
    phone = Product(name="Smart Phone", sku="EL-PHONE-01", category="Electronics", price=299.0)
    headset = Product(name="Headset", sku="EL-HEAD-01", category="Electronics", price=49.5)
    mug = Product(name="Coffee Mug", sku="HM-MUG-01", category="Home", price=8.0)
    session.add_all([downtown, airport, phone, headset, mug])
    await session.flush()

    session.add_all([
        Inventory(product_id=phone.id, store_id=downtown.id, stock_level=10),
        Inventory(product_id=headset.id, store_id=downtown.id, stock_level=5),
        Inventory(product_id=mug.id, store_id=downtown.id, stock_level=0),  # out of stock
        Inventory(product_id=phone.id, store_id=airport.id, stock_level=3),
    ])
    await session.commit()
    logger.info("Catalog seeded successfully.")
    return True

async def main():
    logging.basicConfig(level=logging.INFO)
    await init_db()
    async with AsyncSessionLocal() as session:
        await seed_catalog(session)

if __name__ == "__main__":
    asyncio.run(main())
