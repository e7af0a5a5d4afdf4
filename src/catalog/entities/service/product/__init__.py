"""Entity package: Product."""

from .entity import Product, ProductInput, ProductPage
from .repository import ProductRepository
from .table import ProductTable

__all__ = ["Product", "ProductInput", "ProductPage", "ProductRepository", "ProductTable"]
