from __future__ import annotations

import itertools
from collections.abc import Callable, Generator
from decimal import Decimal
from typing import Any

import pytest
from sqlalchemy import Engine, StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.catalog.entities.service.product import ProductInput
from src.catalog.runtime.config.config_data import (
    AppConfig,
    CacheConfig,
    ConfigData,
    DatabaseConfig,
    LoggingConfig,
    RedisConfig,
)


@pytest.fixture
def test_config() -> ConfigData:
    """Configuration for an in-memory database and the in-memory cache."""
    return ConfigData(
        app=AppConfig(environment="test"),
        database=DatabaseConfig(url="sqlite://"),
        redis=RedisConfig(enabled=False),
        cache=CacheConfig(),
        logging=LoggingConfig(level="DEBUG", format="plain", file=""),
    )


@pytest.fixture
def engine() -> Generator[Engine]:
    """A fresh in-memory database with the catalog tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import models to register them with the metadata
    from src.catalog.entities.service.product import ProductTable  # noqa: F401

    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session]:
    """Create a fresh database session for testing."""
    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            session.rollback()
            session.close()


@pytest.fixture
def product_input_factory() -> Callable[..., ProductInput]:
    """Build valid ProductInput payloads with unique names and SKUs."""
    counter = itertools.count(1)

    def _make(**overrides: Any) -> ProductInput:
        n = next(counter)
        data: dict[str, Any] = {
            "name": f"Product {n}",
            "description": f"Description for product {n}",
            "price": Decimal("9.99"),
            "quantity": 10,
            "category_id": 1,
            "sku": f"TEST-{n:03d}",
            "image_url": None,
            "is_available": True,
        }
        data.update(overrides)
        return ProductInput(**data)

    return _make
