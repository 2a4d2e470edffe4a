from typing import Optional
from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession
from storefront.errors import ValidationError, NotFoundError
from storefront.models import Product, Inventory
from storefront import repository

async def product_exists(product_id: int, db: AsyncSession) -> bool:
    if product_id is None or product_id <= 0:
        raise ValidationError("Product ID must be a positive number")
    return bool(await db.scalar(select(exists().where(Product.id == product_id))))

async def product_name_available(name: Optional[str], db: AsyncSession) -> bool:
    if name is None or not name.strip():
        raise ValidationError("Product and product name must not be null or empty")
    return not await db.scalar(select(exists().where(Product.name == name)))

async def sku_available(sku: Optional[str], db: AsyncSession) -> bool:
    if sku is None or not sku.strip():
        raise ValidationError("Product and SKU must not be null or empty")
    return not await db.scalar(select(exists().where(Product.sku == sku)))

async def inventory_slot_available(product_id: Optional[int], store_id: Optional[int], db: AsyncSession) -> bool:
    """True when no inventory row exists yet for the (product, store) pair."""
    if product_id is None or store_id is None:
        raise ValidationError("Inventory, Product, and Store must not be null")
    stmt = select(exists().where(Inventory.product_id == product_id, Inventory.store_id == store_id))
    return not await db.scalar(stmt)

async def get_inventory(product_id: Optional[int], store_id: Optional[int], db: AsyncSession) -> Inventory:
    if product_id is None or product_id <= 0:
        raise ValidationError("Product ID must be a positive number")
    if store_id is None or store_id <= 0:
        raise ValidationError("Store ID must be a positive number")

    inventory = await repository.find_inventory(product_id, store_id, db)
    if inventory is None:
        raise NotFoundError(
            f"Inventory not found for product ID: {product_id} and store ID: {store_id}"
        )
    return inventory

async def stock_sufficient(product_id: int, store_id: int, quantity: Optional[int], db: AsyncSession) -> bool:
    if quantity is None or quantity <= 0:
        raise ValidationError("Requested quantity must be a positive number")
    inventory = await get_inventory(product_id, store_id, db)
    return inventory.stock_level >= quantity
