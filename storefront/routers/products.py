import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository, validation
from storefront.database import get_session
from storefront.errors import ConflictError, NotFoundError
from storefront.models import Product
from storefront.schemas import (
    ProductCreate, ProductUpdate, ProductRead, ProductResponse, ProductListResponse,
    StoreProductListResponse, MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Path filters use the literal string "null" as "match anything"
WILDCARD = "null"

def _product_list(products) -> ProductListResponse:
    return ProductListResponse(products=[ProductRead.model_validate(p) for p in products])

@router.post("", response_model=MessageResponse)
async def add_product(product_data: ProductCreate, db: AsyncSession = Depends(get_session)):
    if not await validation.product_name_available(product_data.name, db):
        raise ConflictError(f"Product with name '{product_data.name}' already exists")
    if not await validation.sku_available(product_data.sku, db):
        raise ConflictError(f"Product with SKU '{product_data.sku}' already exists")

    product = Product(**product_data.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.sku)
    return MessageResponse(message=f"Product added successfully with ID: {product.id}")

@router.get("", response_model=ProductListResponse)
async def list_products(db: AsyncSession = Depends(get_session)):
    return _product_list(await repository.find_all_products(db))

@router.put("", response_model=MessageResponse)
async def update_product(product_data: ProductUpdate, db: AsyncSession = Depends(get_session)):
    product = await db.get(Product, product_data.id)
    if product is None:
        raise NotFoundError(f"Product not found with ID: {product_data.id}")

    if product_data.name != product.name and not await validation.product_name_available(product_data.name, db):
        raise ConflictError(f"Product with name '{product_data.name}' already exists")
    if product_data.sku != product.sku and not await validation.sku_available(product_data.sku, db):
        raise ConflictError(f"Product with SKU '{product_data.sku}' already exists")

    for field, value in product_data.model_dump(exclude={"id"}).items():
        setattr(product, field, value)
    await db.commit()
    return MessageResponse(message="Product updated successfully")

@router.get("/price-range", response_model=ProductListResponse)
async def products_by_price_range(
    min_price: float = Query(..., alias="minPrice"),
    max_price: float = Query(..., alias="maxPrice"),
    db: AsyncSession = Depends(get_session),
):
    return _product_list(await repository.find_products_by_price_range(min_price, max_price, db))

@router.get("/searchProduct/{name}", response_model=ProductListResponse)
async def search_product(name: str, db: AsyncSession = Depends(get_session)):
    return _product_list(await repository.find_products_by_name(name, db))

@router.get("/category/{name}/{category}", response_model=ProductListResponse)
async def filter_by_name_and_category(name: str, category: str, db: AsyncSession = Depends(get_session)):
    if name == WILDCARD and category == WILDCARD:
        products = await repository.find_all_products(db)
    elif name == WILDCARD:
        products = await repository.find_products_by_category(category, db)
    elif category == WILDCARD:
        products = await repository.find_products_by_name(name, db)
    else:
        products = await repository.find_products_by_category_and_name(category, name, db)
    return _product_list(products)

@router.get("/category/{category}", response_model=ProductListResponse)
async def products_by_category(category: str, db: AsyncSession = Depends(get_session)):
    return _product_list(await repository.find_products_by_category(category, db))

@router.get("/filter/{category}/{store_id}", response_model=StoreProductListResponse)
async def products_by_category_and_store(category: str, store_id: int, db: AsyncSession = Depends(get_session)):
    products = await repository.find_products_in_store(store_id, db)
    if category != WILDCARD:
        products = [p for p in products if p.category and p.category.lower() == category.lower()]
    return StoreProductListResponse(product=[ProductRead.model_validate(p) for p in products])

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: int, db: AsyncSession = Depends(get_session)):
    product = await db.get(Product, product_id)
    if product is None:
        raise NotFoundError(f"Product not found with ID: {product_id}")
    return ProductResponse(products=ProductRead.model_validate(product))

@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: int, db: AsyncSession = Depends(get_session)):
    await remove_product_with_inventory(product_id, db)
    return MessageResponse(message="Product deleted successfully")

async def remove_product_with_inventory(product_id: int, db: AsyncSession):
    if not await validation.product_exists(product_id, db):
        raise NotFoundError(f"Product not found with ID: {product_id}")

    product = await db.get(Product, product_id)
    await repository.delete_inventory_for_product(product_id, db)
    await db.delete(product)
    await db.commit()
    logger.info("Deleted product %s and its inventory", product_id)
