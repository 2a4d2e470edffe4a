from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime

class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case names."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

def _not_blank(v: str) -> str:
    if v is None or not v.strip():
        raise ValueError("must not be blank")
    return v.strip()

# --- Products ---

class ProductCreate(CamelModel):
    name: str = Field(..., example="Wireless Mouse")
    sku: str = Field(..., example="WM-001")
    category: Optional[str] = Field(None, example="Electronics")
    price: float = Field(..., ge=0.0, example=19.99)

class ProductUpdate(ProductCreate):
    id: int = Field(..., gt=0)

class ProductRead(CamelModel):
    id: int
    name: str
    sku: str
    category: Optional[str] = None
    price: float

class ProductResponse(CamelModel):
    products: ProductRead

class ProductListResponse(CamelModel):
    products: List[ProductRead]

class StoreProductListResponse(CamelModel):
    product: List[ProductRead]

# --- Stores ---

class StoreCreate(CamelModel):
    name: str = Field(..., example="Downtown")
    address: str = Field(..., example="12 Main Street")

    @field_validator("name", "address")
    @classmethod
    def required(cls, v: str) -> str:
        return _not_blank(v)

class StoreRead(CamelModel):
    id: int
    name: str
    address: str

class StoreResponse(CamelModel):
    store: StoreRead

class StoreListResponse(CamelModel):
    stores: List[StoreRead]

class StoreExistsResponse(CamelModel):
    exists: bool

# --- Inventory ---

class InventoryCreate(CamelModel):
    product_id: int = Field(..., example=1)
    store_id: int = Field(..., example=1)
    stock_level: int = Field(0, ge=0, example=25)

class InventoryUpdate(InventoryCreate):
    pass

class InventoryRead(CamelModel):
    id: int
    product_id: int
    store_id: int
    stock_level: int

class AvailabilityResponse(CamelModel):
    available: bool

# --- Orders ---

class PurchaseProduct(CamelModel):
    id: int = Field(..., gt=0, example=1)
    quantity: int = Field(..., gt=0, example=2)

class PlaceOrderRequest(CamelModel):
    store_id: int = Field(..., example=1)
    customer_name: str = Field(..., example="Jane Doe")
    customer_email: str = Field(..., example="jane@example.com")
    customer_phone: str = Field(..., example="555-0100")
    purchase_product: List[PurchaseProduct] = Field(..., min_length=1)
    total_price: Optional[float] = Field(None, ge=0.0)

    @field_validator("customer_email")
    @classmethod
    def email_required(cls, v: str) -> str:
        return _not_blank(v)

class OrderItemRead(CamelModel):
    id: int
    product_id: int
    quantity: int
    price: float

class OrderRead(CamelModel):
    id: int
    customer_id: int
    store_id: int
    total_price: float
    created_at: datetime
    items: List[OrderItemRead]

class PlaceOrderResponse(CamelModel):
    message: str
    order: OrderRead

# --- Reviews ---

class ReviewCreate(CamelModel):
    store_id: int
    product_id: int
    customer_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None

class ReviewRead(CamelModel):
    review_id: str
    comment: Optional[str] = None
    rating: int
    customer_name: str

class CustomerReviewRead(CamelModel):
    review_id: str
    comment: Optional[str] = None
    rating: int
    product_id: int
    store_id: int

class ReviewCreatedResponse(CamelModel):
    message: str
    review_id: str

class ReviewListResponse(CamelModel):
    reviews: List[ReviewRead]
    total_reviews: int
    store_id: int
    product_id: int

class CommentedReviewsResponse(CamelModel):
    reviews: List[ReviewRead]
    store_id: int
    product_id: int
    total_reviews_with_comments: int

class RatingRangeResponse(CamelModel):
    reviews: List[ReviewRead]
    store_id: int
    product_id: int
    min_rating: int
    max_rating: int
    total_reviews: int

class AverageRatingResponse(CamelModel):
    average_rating: float
    review_count: int
    store_id: int
    product_id: int

class CustomerReviewsResponse(CamelModel):
    reviews: List[CustomerReviewRead]
    customer_id: int
    total_reviews: int

# --- Shared ---

class MessageResponse(CamelModel):
    message: str

class ErrorResponse(CamelModel):
    message: str
    error: str
    status: int
    timestamp: int
