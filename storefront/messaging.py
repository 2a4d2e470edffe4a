import json
import logging
import aio_pika
from tenacity import retry, stop_after_attempt, wait_exponential
from storefront.config import RABBITMQ_URL

logger = logging.getLogger(__name__)

ORDER_EXCHANGE = "order_exchange"

connection = None
channel = None

@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=10), reraise=True)
async def _connect(url: str):
    return await aio_pika.connect_robust(url)

async def setup_rabbitmq():
    global connection, channel
    if not RABBITMQ_URL:
        logger.info("RABBITMQ_URL not set; order events are disabled.")
        return
    try:
        connection = await _connect(RABBITMQ_URL)
        channel = await connection.channel()
        await channel.declare_exchange(ORDER_EXCHANGE, aio_pika.ExchangeType.TOPIC, durable=True)
        logger.info("RabbitMQ setup complete.")
    except Exception:
        # Orders still go through without events
        logger.exception("Error setting up RabbitMQ; order events are disabled.")
        connection = None
        channel = None

async def close_rabbitmq():
    global connection, channel
    if connection is not None:
        await connection.close()
    connection = None
    channel = None

async def publish_event(exchange_name: str, routing_key: str, message_data: dict):
    """Publish a persistent JSON event. Never raises: events are best effort."""
    if not channel:
        logger.debug("RabbitMQ channel not available. Skipping %s.", message_data.get("event_type"))
        return

    message = aio_pika.Message(
        json.dumps(message_data, default=str).encode("utf-8"),
        content_type="application/json",
        delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
    )

    try:
        exchange = await channel.get_exchange(exchange_name)
        await exchange.publish(message, routing_key=routing_key)
        logger.info("Published event to %s: %s", routing_key, message_data["event_type"])
    except Exception:
        logger.exception("Error publishing event to %s", routing_key)
