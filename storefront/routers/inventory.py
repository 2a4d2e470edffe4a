import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository, validation
from storefront.database import get_session
from storefront.errors import ConflictError, NotFoundError, StorefrontError
from storefront.models import Inventory, Store
from storefront.routers.products import WILDCARD, remove_product_with_inventory
from storefront.schemas import (
    InventoryCreate, InventoryUpdate, ProductRead, ProductListResponse, StoreProductListResponse,
    AvailabilityResponse, MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

@router.put("/update", response_model=MessageResponse)
async def update_inventory(inventory_data: InventoryUpdate, db: AsyncSession = Depends(get_session)):
    if not await validation.product_exists(inventory_data.product_id, db):
        raise NotFoundError(f"Product not found with ID: {inventory_data.product_id}")

    inventory = await validation.get_inventory(inventory_data.product_id, inventory_data.store_id, db)
    inventory.stock_level = inventory_data.stock_level
    await db.commit()
    logger.info(
        "Stock for product %s at store %s set to %s",
        inventory.product_id, inventory.store_id, inventory.stock_level,
    )
    return MessageResponse(message="Inventory updated successfully")

@router.post("/save", response_model=MessageResponse)
async def save_inventory(inventory_data: InventoryCreate, db: AsyncSession = Depends(get_session)):
    if not await validation.inventory_slot_available(inventory_data.product_id, inventory_data.store_id, db):
        raise ConflictError("Inventory already exists for this product and store")
    if not await validation.product_exists(inventory_data.product_id, db):
        raise NotFoundError(f"Product not found with ID: {inventory_data.product_id}")
    if await db.get(Store, inventory_data.store_id) is None:
        raise NotFoundError(f"Store not found with ID: {inventory_data.store_id}")

    db.add(Inventory(**inventory_data.model_dump()))
    await db.commit()
    return MessageResponse(message="Inventory saved successfully")

@router.get("/store/{store_id}/products", response_model=ProductListResponse)
async def store_products(store_id: int, db: AsyncSession = Depends(get_session)):
    products = await repository.find_products_in_store(store_id, db)
    return ProductListResponse(products=[ProductRead.model_validate(p) for p in products])

@router.get("/filter", response_model=StoreProductListResponse)
async def filter_products(
    category: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_session),
):
    any_category = category in (None, "", WILDCARD)
    any_name = name in (None, "", WILDCARD)

    if any_category and any_name:
        products = await repository.find_all_products(db)
    elif any_category:
        products = await repository.find_products_by_name(name, db)
    elif any_name:
        products = await repository.find_products_by_category(category, db, ignore_case=True)
    else:
        products = await repository.find_products_by_category_and_name(category, name, db, ignore_case=True)
    return StoreProductListResponse(product=[ProductRead.model_validate(p) for p in products])

@router.get("/search", response_model=StoreProductListResponse)
async def search_products(
    name: str = Query(...),
    store_id: int = Query(..., alias="storeId"),
    db: AsyncSession = Depends(get_session),
):
    products = await repository.find_products_by_name_in_store(store_id, name, db)
    return StoreProductListResponse(product=[ProductRead.model_validate(p) for p in products])

@router.delete("/product/{product_id}", response_model=MessageResponse)
async def remove_product(product_id: int, db: AsyncSession = Depends(get_session)):
    await remove_product_with_inventory(product_id, db)
    return MessageResponse(message="Product and related inventory deleted successfully")

@router.get("/validate-quantity", response_model=AvailabilityResponse)
async def validate_quantity(
    product_id: int = Query(..., alias="productId"),
    store_id: int = Query(..., alias="storeId"),
    quantity: int = Query(...),
    db: AsyncSession = Depends(get_session),
):
    try:
        available = await validation.stock_sufficient(product_id, store_id, quantity, db)
    except StorefrontError as e:
        logger.debug("Quantity check failed: %s", e.message)
        available = False
    return AvailabilityResponse(available=available)
