import pytest
from sqlalchemy import select, func
from storefront.models import Inventory, Product, Store
from storefront.seeder import seed_catalog

@pytest.mark.asyncio
async def test_seed_catalog_is_idempotent(session_factory):
    async with session_factory() as session:
        assert await seed_catalog(session) is True
    async with session_factory() as session:
        assert await seed_catalog(session) is False

    async with session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(Store)) == 2
        assert await session.scalar(select(func.count()).select_from(Product)) == 3
        assert await session.scalar(select(func.count()).select_from(Inventory)) == 4
