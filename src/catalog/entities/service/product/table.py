"""Product database table model."""

from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field

from src.catalog.entities.core._base import EntityTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products.

    This represents how the Product entity is stored in the database.
    It's separate from the domain entity to maintain clean architecture
    while keeping related code together.
    """

    __tablename__ = "products"

    name: str = Field(max_length=255, nullable=False, index=True)
    description: str | None = Field(default=None, sa_type=sa.Text)
    price: Decimal = Field(max_digits=10, decimal_places=2, nullable=False)
    quantity: int = Field(nullable=False)
    category_id: int = Field(nullable=False, index=True)
    sku: str = Field(max_length=64, nullable=False, unique=True, index=True)
    image_url: str | None = Field(default=None, max_length=512)
    is_available: bool = Field(default=True, nullable=False, index=True)
