"""Shared utilities for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

import typer
from rich.console import Console
from sqlalchemy.exc import SQLAlchemyError

from src.catalog.core.cache import CacheService
from src.catalog.core.exceptions import CatalogError
from src.catalog.core.services import DbSessionService, ProductService, RedisService
from src.catalog.runtime.context import get_config

# Initialize Rich console for colored output
console = Console()


@contextmanager
def cache_service() -> Iterator[CacheService]:
    """Build a cache service on the configured backend and close it afterwards."""
    config = get_config()
    redis_service = RedisService(config)
    backend = redis_service.cache_backend(scan_count=config.cache.scan_count)
    if backend.name != "redis":
        console.print(
            "[yellow]⚠️  Redis is not configured; operating on an empty in-process cache[/yellow]"
        )
    try:
        yield CacheService(backend, config.cache)
    finally:
        redis_service.close()


@contextmanager
def product_service() -> Iterator[ProductService]:
    """Product service bound to a fresh database session and the configured cache."""
    config = get_config()
    database_service = DbSessionService(config)
    try:
        with cache_service() as cache, database_service.session_scope() as session:
            yield ProductService(session, cache, config.cache)
    except (CatalogError, SQLAlchemyError) as e:
        console.print(f"[red]❌ {type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1) from e
    finally:
        database_service.dispose()
