import logging
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository
from storefront.database import get_session
from storefront.errors import ConflictError, NotFoundError, ValidationError
from storefront.models import Store
from storefront.orders import place_order
from storefront.schemas import (
    StoreCreate, StoreRead, StoreResponse, StoreListResponse, StoreExistsResponse,
    PlaceOrderRequest, PlaceOrderResponse, OrderRead, MessageResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

def _store_list(stores) -> StoreListResponse:
    return StoreListResponse(stores=[StoreRead.model_validate(s) for s in stores])

@router.post("", response_model=MessageResponse)
async def add_store(store_data: StoreCreate, db: AsyncSession = Depends(get_session)):
    if await repository.find_store_by_name(store_data.name, db) is not None:
        raise ConflictError(f"Store with name '{store_data.name}' already exists")

    store = Store(name=store_data.name, address=store_data.address)
    db.add(store)
    await db.commit()
    await db.refresh(store)
    logger.info("Created store %s (%s)", store.id, store.name)
    return MessageResponse(message=f"Store created successfully with ID: {store.id}")

@router.get("", response_model=StoreListResponse)
async def list_stores(db: AsyncSession = Depends(get_session)):
    return _store_list(await repository.find_stores(db))

@router.get("/sorted", response_model=StoreListResponse)
async def stores_sorted_by_name(db: AsyncSession = Depends(get_session)):
    return _store_list(await repository.find_stores(db, sort_by_name=True))

@router.get("/search", response_model=StoreListResponse)
async def search_stores(name: str = Query(...), db: AsyncSession = Depends(get_session)):
    if not name.strip():
        raise ValidationError("Search name parameter is required")
    return _store_list(await repository.find_stores_by_name(name, db))

@router.get("/validate/{store_id}", response_model=StoreExistsResponse)
async def validate_store(store_id: int, db: AsyncSession = Depends(get_session)):
    return StoreExistsResponse(exists=await db.get(Store, store_id) is not None)

@router.post("/placeOrder", response_model=PlaceOrderResponse)
async def place_order_route(order_data: PlaceOrderRequest, db: AsyncSession = Depends(get_session)):
    order = await place_order(order_data, db)
    return PlaceOrderResponse(message="Order placed successfully", order=OrderRead.model_validate(order))

@router.get("/{store_id}", response_model=StoreResponse)
async def get_store(store_id: int, db: AsyncSession = Depends(get_session)):
    store = await db.get(Store, store_id)
    if store is None:
        raise NotFoundError(f"Store not found with ID: {store_id}")
    return StoreResponse(store=StoreRead.model_validate(store))

@router.put("/{store_id}", response_model=MessageResponse)
async def update_store(store_id: int, store_data: StoreCreate, db: AsyncSession = Depends(get_session)):
    store = await db.get(Store, store_id)
    if store is None:
        raise NotFoundError(f"Store not found with ID: {store_id}")

    same_name = await repository.find_store_by_name(store_data.name, db)
    if same_name is not None and same_name.id != store.id:
        raise ConflictError(f"Store with name '{store_data.name}' already exists")

    store.name = store_data.name
    store.address = store_data.address
    await db.commit()
    return MessageResponse(message="Store updated successfully")

@router.delete("/{store_id}", response_model=MessageResponse)
async def delete_store(store_id: int, db: AsyncSession = Depends(get_session)):
    store = await db.get(Store, store_id)
    if store is None:
        raise NotFoundError(f"Store not found with ID: {store_id}")

    await repository.delete_inventory_for_store(store_id, db)
    await db.delete(store)
    await db.commit()
    logger.info("Deleted store %s and its inventory", store_id)
    return MessageResponse(message="Store deleted successfully")
