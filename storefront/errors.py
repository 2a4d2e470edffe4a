class StorefrontError(Exception):
    """Base class for failures that are reported back to the caller."""

    error_code = "BUSINESS_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

class ValidationError(StorefrontError):
    """Malformed input: missing or invalid fields."""

    error_code = "VALIDATION_ERROR"

class NotFoundError(StorefrontError):
    """A referenced entity does not exist."""

    error_code = "NOT_FOUND"

class ConflictError(StorefrontError):
    """Duplicate name, SKU, inventory slot or review."""

    error_code = "CONFLICT"

class InsufficientStockError(StorefrontError):
    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product ID: {product_id}. "
            f"Available: {available}, Requested: {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested
