"""Domain exceptions and the HTTP status each one maps to."""
from fastapi import status


class StoreError(Exception):
    """Base class for errors reported to API callers as ``{"error": ...}``."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Missing required field or malformed request body."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnknownProductError(ValidationError):
    """An order line references a product that does not exist."""

    def __init__(self, product_id: int):
        super().__init__(f"Product with id {product_id} not found")
        self.product_id = product_id


class NotFoundError(StoreError):
    """Requested product or order does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStockError(StoreError):
    """Requested quantity exceeds the stock available for a product."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, product_id: int, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product with id {product_id}. "
            f"Available: {available}, requested: {requested}"
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class StorageError(StoreError):
    """Transaction or commit failure; the enclosing operation was rolled back."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class UpstreamError(Exception):
    """
    Failure talking to an external provider.

    Never leaves the client wrappers: it is converted into a
    ``success=False`` result with fallback or demo data.
    """

    def __init__(self, message: str, code: str = None, details=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
