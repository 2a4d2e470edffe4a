import logging
from typing import List, Optional, Tuple
from pymongo import AsyncMongoClient, ASCENDING
from pymongo.errors import DuplicateKeyError
from storefront.config import MONGO_URL, MONGO_DB, REVIEWS_COLLECTION
from storefront.errors import ConflictError
from storefront.schemas import ReviewCreate

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW = "Customer has already reviewed this product at this store"

_client: Optional[AsyncMongoClient] = None

def to_str_id(doc: dict) -> dict:
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d

class ReviewRepository:
    """Review documents keyed by (storeId, productId, customerId)."""

    def __init__(self, collection):
        self.collection = collection

    async def ensure_indexes(self):
        await self.collection.create_index([("storeId", ASCENDING), ("productId", ASCENDING)])
        await self.collection.create_index([("customerId", ASCENDING)])
        # Anonymous reviews (customerId null) are exempt from the one-per-triple rule
        await self.collection.create_index(
            [("customerId", ASCENDING), ("productId", ASCENDING), ("storeId", ASCENDING)],
            unique=True,
            name="uq_review_customer_product_store",
            partialFilterExpression={"customerId": {"$type": "number"}},
        )

    async def find_by_store_and_product(
        self,
        store_id: int,
        product_id: int,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
    ) -> List[dict]:
        query = {"storeId": store_id, "productId": product_id}
        if min_rating is not None or max_rating is not None:
            query["rating"] = {}
            if min_rating is not None:
                query["rating"]["$gte"] = min_rating
            if max_rating is not None:
                query["rating"]["$lte"] = max_rating
        docs = await self.collection.find(query).to_list()
        return [to_str_id(d) for d in docs]

    async def find_by_customer(self, customer_id: int) -> List[dict]:
        docs = await self.collection.find({"customerId": customer_id}).to_list()
        return [to_str_id(d) for d in docs]

    async def exists_for(self, customer_id: int, product_id: int, store_id: int) -> bool:
        query = {"customerId": customer_id, "productId": product_id, "storeId": store_id}
        return await self.collection.count_documents(query, limit=1) > 0

    async def create(self, review: ReviewCreate) -> str:
        if review.customer_id is not None and await self.exists_for(
            review.customer_id, review.product_id, review.store_id
        ):
            raise ConflictError(DUPLICATE_REVIEW)

        document = {
            "storeId": review.store_id,
            "productId": review.product_id,
            "customerId": review.customer_id,
            "rating": review.rating,
            "comment": review.comment,
        }
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError:
            raise ConflictError(DUPLICATE_REVIEW)
        logger.info("Stored review %s for product %s at store %s", result.inserted_id, review.product_id, review.store_id)
        return str(result.inserted_id)

    async def average_rating(self, store_id: int, product_id: int) -> Tuple[float, int]:
        """Mean rating rounded to two decimals, with the review count; 0.0 when unrated."""
        reviews = await self.find_by_store_and_product(store_id, product_id)
        if not reviews:
            return 0.0, 0
        total = sum(r["rating"] for r in reviews)
        return round(total / len(reviews), 2), len(reviews)

def get_review_collection():
    global _client
    if _client is None:
        _client = AsyncMongoClient(MONGO_URL)
    return _client[MONGO_DB][REVIEWS_COLLECTION]

def get_review_repository() -> ReviewRepository:
    return ReviewRepository(get_review_collection())

async def close_review_client():
    global _client
    if _client is not None:
        await _client.close()
        _client = None
