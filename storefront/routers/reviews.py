from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from storefront import repository
from storefront.database import get_session
from storefront.reviews import ReviewRepository, get_review_repository
from storefront.schemas import (
    ReviewCreate, ReviewRead, CustomerReviewRead, ReviewCreatedResponse, ReviewListResponse,
    CommentedReviewsResponse, RatingRangeResponse, AverageRatingResponse, CustomerReviewsResponse,
)

router = APIRouter()

ANONYMOUS = "Anonymous"
UNKNOWN_CUSTOMER = "Unknown Customer"

async def customer_name(customer_id: Optional[int], db: AsyncSession) -> str:
    if customer_id is None:
        return ANONYMOUS
    name = await repository.find_customer_name(customer_id, db)
    return name if name is not None else UNKNOWN_CUSTOMER

async def _with_customer_names(docs: List[dict], db: AsyncSession) -> List[ReviewRead]:
    names = {}
    reviews = []
    for doc in docs:
        customer_id = doc.get("customerId")
        if customer_id not in names:
            names[customer_id] = await customer_name(customer_id, db)
        reviews.append(ReviewRead(
            review_id=doc["id"],
            comment=doc.get("comment"),
            rating=doc["rating"],
            customer_name=names[customer_id],
        ))
    return reviews

@router.post("", response_model=ReviewCreatedResponse)
async def create_review(review_data: ReviewCreate, reviews: ReviewRepository = Depends(get_review_repository)):
    review_id = await reviews.create(review_data)
    return ReviewCreatedResponse(message="Review created successfully", review_id=review_id)

@router.get("/rating-range", response_model=RatingRangeResponse)
async def reviews_by_rating_range(
    store_id: int = Query(..., alias="storeId"),
    product_id: int = Query(..., alias="productId"),
    min_rating: int = Query(..., alias="minRating"),
    max_rating: int = Query(..., alias="maxRating"),
    reviews: ReviewRepository = Depends(get_review_repository),
    db: AsyncSession = Depends(get_session),
):
    docs = await reviews.find_by_store_and_product(store_id, product_id, min_rating, max_rating)
    items = await _with_customer_names(docs, db)
    return RatingRangeResponse(
        reviews=items,
        store_id=store_id,
        product_id=product_id,
        min_rating=min_rating,
        max_rating=max_rating,
        total_reviews=len(items),
    )

@router.get("/customer/{customer_id}", response_model=CustomerReviewsResponse)
async def reviews_by_customer(customer_id: int, reviews: ReviewRepository = Depends(get_review_repository)):
    docs = await reviews.find_by_customer(customer_id)
    items = [
        CustomerReviewRead(
            review_id=d["id"],
            comment=d.get("comment"),
            rating=d["rating"],
            product_id=d["productId"],
            store_id=d["storeId"],
        )
        for d in docs
    ]
    return CustomerReviewsResponse(reviews=items, customer_id=customer_id, total_reviews=len(items))

@router.get("/{store_id}/{product_id}", response_model=ReviewListResponse)
async def get_reviews(
    store_id: int,
    product_id: int,
    reviews: ReviewRepository = Depends(get_review_repository),
    db: AsyncSession = Depends(get_session),
):
    docs = await reviews.find_by_store_and_product(store_id, product_id)
    items = await _with_customer_names(docs, db)
    return ReviewListResponse(reviews=items, total_reviews=len(items), store_id=store_id, product_id=product_id)

@router.get("/{store_id}/{product_id}/average-rating", response_model=AverageRatingResponse)
async def get_average_rating(store_id: int, product_id: int, reviews: ReviewRepository = Depends(get_review_repository)):
    average, count = await reviews.average_rating(store_id, product_id)
    return AverageRatingResponse(average_rating=average, review_count=count, store_id=store_id, product_id=product_id)

@router.get("/{store_id}/{product_id}/with-comments", response_model=CommentedReviewsResponse)
async def get_reviews_with_comments(
    store_id: int,
    product_id: int,
    reviews: ReviewRepository = Depends(get_review_repository),
    db: AsyncSession = Depends(get_session),
):
    docs = await reviews.find_by_store_and_product(store_id, product_id)
    commented = [d for d in docs if d.get("comment") and d["comment"].strip()]
    items = await _with_customer_names(commented, db)
    return CommentedReviewsResponse(
        reviews=items,
        store_id=store_id,
        product_id=product_id,
        total_reviews_with_comments=len(items),
    )
