"""Core services exports."""

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Product Service
from .product_service import PrimeReport, ProductService

# Redis Service
from .redis_service import RedisService

__all__ = [
    # Database Services
    "DbManageService",
    "DbSessionService",
    # Product Service
    "PrimeReport",
    "ProductService",
    # Redis Service
    "RedisService",
]
