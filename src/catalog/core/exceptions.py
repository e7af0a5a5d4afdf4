"""Domain and cache exceptions.

Store-side errors propagate to the HTTP layer, which maps them onto status
codes. Cache-side errors never leave the cache service; they exist so the
cache layer can tell an unreachable backend from a corrupted entry.
"""

from typing import Any


class CatalogError(Exception):
    """Base exception for the catalog service."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = (details or {}).copy()
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ProductNotFoundError(CatalogError):
    """Raised when a write targets a product id that does not exist."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found", details={"product_id": product_id}
        )
        self.product_id = product_id


class DuplicateSkuError(CatalogError):
    """Raised when a create or replace would violate SKU uniqueness."""

    def __init__(self, sku: str):
        super().__init__(
            f"A product with SKU '{sku}' already exists", details={"sku": sku}
        )
        self.sku = sku


class InvalidPriceRangeError(CatalogError):
    """Raised when a price-range query has its bounds inverted."""


class CacheError(CatalogError):
    """Base exception for cache-related errors."""


class CacheUnavailableError(CacheError):
    """The cache backend could not be reached or rejected the command.

    Callers degrade to the store.
    """


class CacheCorruptedError(CacheError):
    """A cached payload could not be decoded into the expected type.

    This is alertable: it points at a serializer change or a foreign writer.
    """
