import os

# Point the app at SQLite and keep events off before any storefront import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["RABBITMQ_URL"] = ""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from storefront.database import Base, get_session
from storefront.main import app
from storefront.models import Product, Store, Inventory
from storefront.reviews import ReviewRepository, get_review_repository

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)

@pytest.fixture
def seed(session_factory):
    """Create a store, products and inventory rows; returns their ids."""
    async def _seed(stock=None, prices=None):
        stock = stock or {"Smart Phone": 5}
        prices = prices or {}
        async with session_factory() as session:
            store = Store(name="Downtown", address="12 Main Street")
            session.add(store)
            await session.flush()
            ids = {"store": store.id}
            for i, (name, level) in enumerate(stock.items()):
                product = Product(
                    name=name,
                    sku=f"SKU-{i}",
                    category="Electronics",
                    price=prices.get(name, 10.0),
                )
                session.add(product)
                await session.flush()
                if level is not None:
                    session.add(Inventory(product_id=product.id, store_id=store.id, stock_level=level))
                ids[name] = product.id
            await session.commit()
        return ids
    return _seed

@pytest.fixture
def review_collection():
    """Mocked async pymongo collection."""
    collection = MagicMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.insert_one = AsyncMock()
    collection.create_index = AsyncMock()
    collection.find.return_value.to_list = AsyncMock(return_value=[])
    return collection

@pytest_asyncio.fixture
async def client(session_factory, review_collection):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_review_repository] = lambda: ReviewRepository(review_collection)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
