"""Entity: Product."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, computed_field

from src.catalog.entities.core._base import Entity


class ProductFields(BaseModel):
    """Writable product attributes shared by the entity and its input model."""

    name: str = Field(min_length=1, max_length=255, description="Product name")
    description: str | None = Field(default=None, description="Free-text description")
    price: Decimal = Field(
        ge=0, max_digits=10, decimal_places=2, description="Unit price"
    )
    quantity: int = Field(ge=0, description="Units in stock")
    category_id: int = Field(description="Category reference")
    sku: str = Field(min_length=1, max_length=64, description="Stock keeping unit")
    image_url: str | None = Field(default=None, description="Image reference")
    is_available: bool = Field(default=True, description="Explicit availability flag")


class ProductInput(ProductFields):
    """Request body for creating or fully replacing a product."""


class Product(Entity, ProductFields):
    """Product entity representing a catalog record.

    This is the domain model returned by the repository and stored in the
    cache. It inherits from Entity to get the UUID identifier and timestamps.
    """

    @computed_field
    @property
    def available(self) -> bool:
        """A product is available when flagged so and actually in stock."""
        return self.is_available and self.quantity > 0

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.name == other.name
            and self.description == other.description
            and self.price == other.price
            and self.quantity == other.quantity
            and self.category_id == other.category_id
            and self.sku == other.sku
            and self.image_url == other.image_url
            and self.is_available == other.is_available
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.name,
            self.description,
            self.price,
            self.quantity,
            self.category_id,
            self.sku,
            self.image_url,
            self.is_available,
        ))


class ProductPage(BaseModel):
    """One page of available products."""

    items: list[Product]
    page: int = Field(ge=0)
    size: int = Field(gt=0)
    total: int = Field(ge=0)

    @computed_field
    @property
    def total_pages(self) -> int:
        return -(-self.total // self.size)
