"""
Order placement.

``place_order`` runs every step inside the caller's session and commits once
at the end, so a failure anywhere (unknown store, unknown product, missing
inventory row, insufficient stock) leaves no customer, inventory decrement,
order header or line item behind.
"""
import logging
from datetime import datetime
from typing import Iterable, List
from uuid import uuid4
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository
from storefront.errors import NotFoundError, InsufficientStockError
from storefront.messaging import publish_event
from storefront.models import Customer, Store, Product, OrderDetails, OrderItem
from storefront.schemas import PlaceOrderRequest, PurchaseProduct

logger = logging.getLogger(__name__)

async def resolve_customer(request: PlaceOrderRequest, db: AsyncSession) -> Customer:
    """Look the customer up by email, creating the record on first order."""
    customer = await repository.find_customer_by_email(request.customer_email, db)
    if customer is None:
        customer = Customer(
            name=request.customer_name,
            email=request.customer_email,
            phone=request.customer_phone,
        )
        db.add(customer)
        await db.flush()
        logger.info("Created customer %s for %s", customer.id, customer.email)
    return customer

async def resolve_store(store_id: int, db: AsyncSession) -> Store:
    store = await db.get(Store, store_id)
    if store is None:
        raise NotFoundError(f"Store not found with ID: {store_id}")
    return store

async def reserve_line(line: PurchaseProduct, store: Store, db: AsyncSession) -> OrderItem:
    """Take stock for one line and return the (unsaved) order item."""
    product = await db.get(Product, line.id)
    if product is None:
        raise NotFoundError(f"Product not found with ID: {line.id}")

    inventory = await repository.find_inventory(product.id, store.id, db, for_update=True)
    if inventory is None:
        raise NotFoundError(
            f"Inventory not found for product ID: {product.id} and store ID: {store.id}"
        )
    if inventory.stock_level < line.quantity:
        raise InsufficientStockError(product.id, inventory.stock_level, line.quantity)

    remaining = await repository.decrement_stock(product.id, store.id, line.quantity, db)
    if remaining is None:
        # Drained by a concurrent order between the read and the update
        await db.refresh(inventory)
        raise InsufficientStockError(product.id, inventory.stock_level, line.quantity)

    return OrderItem(product_id=product.id, quantity=line.quantity, price=product.price)

def calculate_total(items: Iterable[OrderItem]) -> float:
    return sum(item.quantity * item.price for item in items)

async def place_order(request: PlaceOrderRequest, db: AsyncSession) -> OrderDetails:
    try:
        customer = await resolve_customer(request, db)
        store = await resolve_store(request.store_id, db)

        items: List[OrderItem] = []
        for line in request.purchase_product:
            items.append(await reserve_line(line, store, db))

        total_price = request.total_price
        if total_price is None:
            total_price = calculate_total(items)

        # Flush inserts the header first, then its line items
        order = OrderDetails(
            customer_id=customer.id,
            store_id=store.id,
            total_price=total_price,
            created_at=datetime.utcnow(),
            items=items,
        )
        db.add(order)
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Order %s placed for customer %s at store %s (total %.2f)",
        order.id, customer.id, store.id, order.total_price,
    )

    await publish_event("order_exchange", "order.placed", {
        "event_id": str(uuid4()),
        "event_type": "OrderPlaced",
        "timestamp": order.created_at.isoformat(),
        "order_id": order.id,
        "customer_id": customer.id,
        "store_id": store.id,
        "items": [{"product_id": i.product_id, "quantity": i.quantity, "price": i.price} for i in items],
        "total_price": order.total_price,
    })
    return order
