"""Product catalog service with a Redis cache-aside layer.

The package is organised the same way for every concern:

- runtime: configuration loading and the application context
- entities: domain models, table models and repositories
- core: cache access, database and Redis lifecycle, product service
- api: FastAPI application, routers and dependencies
- cli: operator commands for the database and cache
"""

__version__ = "0.1.0"
