import pytest
from unittest.mock import AsyncMock, patch
from sqlalchemy import select, func
from storefront.errors import InsufficientStockError, NotFoundError
from storefront.models import Customer, Inventory, OrderDetails, OrderItem, Product
from storefront.orders import place_order, calculate_total
from storefront.schemas import PlaceOrderRequest

def order_request(store_id, lines, email="jane@example.com", total_price=None):
    return PlaceOrderRequest(
        store_id=store_id,
        customer_name="Jane Doe",
        customer_email=email,
        customer_phone="555-0100",
        purchase_product=[{"id": product_id, "quantity": qty} for product_id, qty in lines],
        total_price=total_price,
    )

async def stock_of(session_factory, product_id, store_id):
    async with session_factory() as session:
        result = await session.execute(
            select(Inventory.stock_level).where(
                Inventory.product_id == product_id, Inventory.store_id == store_id
            )
        )
        return result.scalar_one()

async def count_rows(session_factory, model):
    async with session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))

@pytest.mark.asyncio
async def test_place_order_decrements_stock_and_computes_total(session_factory, seed):
    """
    Stock 5, order 3 -> stock 2; total is quantity x price when none is supplied.
    """
    ids = await seed(stock={"Smart Phone": 5, "Headset": 4}, prices={"Smart Phone": 199.5, "Headset": 20.0})

    async with session_factory() as session:
        order = await place_order(
            order_request(ids["store"], [(ids["Smart Phone"], 3), (ids["Headset"], 1)]), session
        )

    assert order.id is not None
    assert order.total_price == pytest.approx(3 * 199.5 + 20.0)
    assert [(i.product_id, i.quantity, i.price) for i in order.items] == [
        (ids["Smart Phone"], 3, 199.5),
        (ids["Headset"], 1, 20.0),
    ]
    assert await stock_of(session_factory, ids["Smart Phone"], ids["store"]) == 2
    assert await stock_of(session_factory, ids["Headset"], ids["store"]) == 3
    assert await count_rows(session_factory, OrderItem) == 2

@pytest.mark.asyncio
async def test_place_order_keeps_supplied_total(session_factory, seed):
    ids = await seed()

    async with session_factory() as session:
        order = await place_order(order_request(ids["store"], [(ids["Smart Phone"], 2)], total_price=15.0), session)

    assert order.total_price == 15.0

@pytest.mark.asyncio
async def test_customer_is_resolved_by_email(session_factory, seed):
    ids = await seed(stock={"Smart Phone": 10})

    async with session_factory() as session:
        first = await place_order(order_request(ids["store"], [(ids["Smart Phone"], 1)]), session)
    async with session_factory() as session:
        second = await place_order(order_request(ids["store"], [(ids["Smart Phone"], 1)]), session)

    assert first.customer_id == second.customer_id
    assert await count_rows(session_factory, Customer) == 1
    assert await count_rows(session_factory, OrderDetails) == 2

@pytest.mark.asyncio
async def test_insufficient_stock_rolls_back_whole_order(session_factory, seed):
    """
    The first line's decrement must not survive when a later line fails.
    """
    ids = await seed(stock={"Smart Phone": 5, "Headset": 1})

    async with session_factory() as session:
        with pytest.raises(InsufficientStockError) as exc_info:
            await place_order(
                order_request(ids["store"], [(ids["Smart Phone"], 3), (ids["Headset"], 2)]), session
            )

    assert exc_info.value.product_id == ids["Headset"]
    assert exc_info.value.available == 1
    assert exc_info.value.requested == 2
    assert "Available: 1, Requested: 2" in exc_info.value.message

    assert await stock_of(session_factory, ids["Smart Phone"], ids["store"]) == 5
    assert await count_rows(session_factory, OrderDetails) == 0
    assert await count_rows(session_factory, OrderItem) == 0
    assert await count_rows(session_factory, Customer) == 0

@pytest.mark.asyncio
async def test_second_order_cannot_oversell(session_factory, seed):
    ids = await seed(stock={"Smart Phone": 5})
    request = order_request(ids["store"], [(ids["Smart Phone"], 3)])

    async with session_factory() as session:
        await place_order(request, session)
    async with session_factory() as session:
        with pytest.raises(InsufficientStockError):
            await place_order(request, session)

    assert await stock_of(session_factory, ids["Smart Phone"], ids["store"]) == 2
    assert await count_rows(session_factory, OrderDetails) == 1

@pytest.mark.asyncio
async def test_lost_decrement_race_reports_insufficient_stock(session_factory, seed):
    """
    If another order drains the row between the check and the update, the
    conditional update matches nothing and the order fails.
    """
    ids = await seed(stock={"Smart Phone": 5})

    with patch("storefront.orders.repository.decrement_stock", new=AsyncMock(return_value=None)):
        async with session_factory() as session:
            with pytest.raises(InsufficientStockError):
                await place_order(order_request(ids["store"], [(ids["Smart Phone"], 3)]), session)

    assert await count_rows(session_factory, OrderDetails) == 0

@pytest.mark.asyncio
async def test_unknown_store_creates_nothing(session_factory, seed):
    ids = await seed()

    async with session_factory() as session:
        with pytest.raises(NotFoundError, match="Store not found with ID: 999"):
            await place_order(order_request(999, [(ids["Smart Phone"], 1)]), session)

    assert await count_rows(session_factory, Customer) == 0

@pytest.mark.asyncio
async def test_unknown_product_fails(session_factory, seed):
    ids = await seed()

    async with session_factory() as session:
        with pytest.raises(NotFoundError, match="Product not found with ID: 4242"):
            await place_order(order_request(ids["store"], [(4242, 1)]), session)

@pytest.mark.asyncio
async def test_product_without_inventory_row_fails(session_factory, seed):
    ids = await seed(stock={"Smart Phone": 5, "Coffee Mug": None})

    async with session_factory() as session:
        with pytest.raises(NotFoundError, match="Inventory not found"):
            await place_order(order_request(ids["store"], [(ids["Coffee Mug"], 1)]), session)

    assert await stock_of(session_factory, ids["Smart Phone"], ids["store"]) == 5

@pytest.mark.asyncio
async def test_item_price_is_frozen_at_order_time(session_factory, seed):
    ids = await seed(prices={"Smart Phone": 100.0})

    async with session_factory() as session:
        order = await place_order(order_request(ids["store"], [(ids["Smart Phone"], 1)]), session)

    async with session_factory() as session:
        product = await session.get(Product, ids["Smart Phone"])
        product.price = 250.0
        await session.commit()

    async with session_factory() as session:
        item = (await session.execute(select(OrderItem).where(OrderItem.order_id == order.id))).scalar_one()
        assert item.price == 100.0

@pytest.mark.asyncio
async def test_order_placed_event_is_published(session_factory, seed):
    ids = await seed()

    with patch("storefront.orders.publish_event", new=AsyncMock()) as mock_publish_event:
        async with session_factory() as session:
            order = await place_order(order_request(ids["store"], [(ids["Smart Phone"], 2)]), session)

    mock_publish_event.assert_called_once()
    args, _ = mock_publish_event.call_args
    assert args[0] == "order_exchange"
    assert args[1] == "order.placed"
    assert args[2]["event_type"] == "OrderPlaced"
    assert args[2]["order_id"] == order.id
    assert args[2]["items"] == [{"product_id": ids["Smart Phone"], "quantity": 2, "price": 10.0}]

@pytest.mark.asyncio
async def test_failed_order_publishes_nothing(session_factory, seed):
    ids = await seed(stock={"Smart Phone": 1})

    with patch("storefront.orders.publish_event", new=AsyncMock()) as mock_publish_event:
        async with session_factory() as session:
            with pytest.raises(InsufficientStockError):
                await place_order(order_request(ids["store"], [(ids["Smart Phone"], 2)]), session)

    mock_publish_event.assert_not_called()

def test_calculate_total():
    items = [OrderItem(quantity=2, price=1.25), OrderItem(quantity=3, price=10.0)]
    assert calculate_total(items) == pytest.approx(32.5)
    assert calculate_total([]) == 0
