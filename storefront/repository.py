"""
Query helpers for the relational store.

Every function takes the caller's AsyncSession and never commits; transaction
boundaries belong to the route handler or the order workflow.
"""
from typing import Optional, Sequence
from sqlalchemy import select, delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.models import Product, Store, Inventory, Customer

def _contains(column, text: str):
    # % and _ in user text match literally
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return func.lower(column).like(f"%{escaped}%", escape="\\")

# --- Customers ---

async def find_customer_by_email(email: str, db: AsyncSession) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.email == email).order_by(Customer.id))
    return result.scalars().first()

async def find_customer_name(customer_id: int, db: AsyncSession) -> Optional[str]:
    result = await db.execute(select(Customer.name).where(Customer.id == customer_id))
    return result.scalar_one_or_none()

# --- Products ---

async def find_all_products(db: AsyncSession) -> Sequence[Product]:
    result = await db.execute(select(Product).order_by(Product.id))
    return result.scalars().all()

async def find_products_by_name(name: str, db: AsyncSession) -> Sequence[Product]:
    result = await db.execute(select(Product).where(_contains(Product.name, name)).order_by(Product.id))
    return result.scalars().all()

async def find_products_by_category(category: str, db: AsyncSession, ignore_case: bool = False) -> Sequence[Product]:
    if ignore_case:
        condition = func.lower(Product.category) == category.lower()
    else:
        condition = Product.category == category
    result = await db.execute(select(Product).where(condition).order_by(Product.id))
    return result.scalars().all()

async def find_products_by_category_and_name(
    category: str, name: str, db: AsyncSession, ignore_case: bool = False
) -> Sequence[Product]:
    if ignore_case:
        category_condition = func.lower(Product.category) == category.lower()
    else:
        category_condition = Product.category == category
    stmt = select(Product).where(category_condition, _contains(Product.name, name)).order_by(Product.id)
    result = await db.execute(stmt)
    return result.scalars().all()

async def find_products_by_price_range(min_price: float, max_price: float, db: AsyncSession) -> Sequence[Product]:
    stmt = select(Product).where(Product.price.between(min_price, max_price)).order_by(Product.price, Product.id)
    result = await db.execute(stmt)
    return result.scalars().all()

async def find_products_in_store(store_id: int, db: AsyncSession) -> Sequence[Product]:
    """Products with stock_level > 0 at the given store."""
    stmt = (
        select(Product)
        .join(Inventory, Inventory.product_id == Product.id)
        .where(Inventory.store_id == store_id, Inventory.stock_level > 0)
        .distinct()
        .order_by(Product.id)
    )
    result = await db.execute(stmt)
    return result.scalars().all()

async def find_products_by_name_in_store(store_id: int, name: str, db: AsyncSession) -> Sequence[Product]:
    stmt = (
        select(Product)
        .join(Inventory, Inventory.product_id == Product.id)
        .where(Inventory.store_id == store_id, _contains(Product.name, name))
        .distinct()
        .order_by(Product.id)
    )
    result = await db.execute(stmt)
    return result.scalars().all()

# --- Stores ---

async def find_store_by_name(name: str, db: AsyncSession) -> Optional[Store]:
    result = await db.execute(select(Store).where(Store.name == name))
    return result.scalars().first()

async def find_stores(db: AsyncSession, sort_by_name: bool = False) -> Sequence[Store]:
    order = Store.name.asc() if sort_by_name else Store.id.asc()
    result = await db.execute(select(Store).order_by(order))
    return result.scalars().all()

async def find_stores_by_name(name: str, db: AsyncSession) -> Sequence[Store]:
    result = await db.execute(select(Store).where(_contains(Store.name, name)).order_by(Store.id))
    return result.scalars().all()

# --- Inventory ---

async def find_inventory(product_id: int, store_id: int, db: AsyncSession, for_update: bool = False) -> Optional[Inventory]:
    stmt = select(Inventory).where(Inventory.product_id == product_id, Inventory.store_id == store_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalars().first()

async def decrement_stock(product_id: int, store_id: int, quantity: int, db: AsyncSession) -> Optional[int]:
    """
    Atomically subtract quantity from the (product, store) stock level.

    The update only matches while stock_level >= quantity, so it can never
    produce a negative level. Returns the new level, or None when no row
    matched.
    """
    stmt = (
        update(Inventory)
        .where(
            Inventory.product_id == product_id,
            Inventory.store_id == store_id,
            Inventory.stock_level >= quantity,
        )
        .values(stock_level=Inventory.stock_level - quantity)
        .returning(Inventory.stock_level)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()

async def delete_inventory_for_product(product_id: int, db: AsyncSession) -> None:
    await db.execute(delete(Inventory).where(Inventory.product_id == product_id))

async def delete_inventory_for_store(store_id: int, db: AsyncSession) -> None:
    await db.execute(delete(Inventory).where(Inventory.store_id == store_id))
