"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model with business logic
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .service.product import (
    Product,
    ProductInput,
    ProductPage,
    ProductRepository,
    ProductTable,
)

__all__ = [
    "Product",
    "ProductInput",
    "ProductPage",
    "ProductRepository",
    "ProductTable",
]
