"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.cache import CacheService
from src.catalog.core.services import DbSessionService, ProductService, RedisService


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_database_service(request: Request) -> DbSessionService:
    """Get the database service instance."""
    return get_app_dependencies(request).database_service


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session for the duration of one request."""
    session = get_database_service(request).get_session()
    try:
        yield session
    finally:
        session.close()


def get_redis_service(request: Request) -> RedisService:
    """Get the Redis service instance."""
    return get_app_dependencies(request).redis_service


def get_cache_service(request: Request) -> CacheService:
    """Get the cache service instance."""
    return get_app_dependencies(request).cache_service


def get_product_service(
    request: Request,
    session: Session = Depends(get_db_session),
    cache: CacheService = Depends(get_cache_service),
) -> ProductService:
    """Build the product service bound to this request's session."""
    config = get_app_dependencies(request).config
    return ProductService(session, cache, config.cache)
