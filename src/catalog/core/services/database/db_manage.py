"""Schema management for the catalog database."""

from loguru import logger
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import get_config


class DbManageService:
    def __init__(self, config: ConfigData | None = None, engine: Engine | None = None):
        config = config or get_config()
        self._engine = engine or create_engine(
            config.database.connection_string, echo=False
        )

    def create_all(self) -> None:
        """Create all database tables."""
        from src.catalog.entities.service.product import ProductTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def drop_all(self) -> None:
        """Drop all database tables."""
        from src.catalog.entities.service.product import ProductTable  # noqa: F401

        SQLModel.metadata.drop_all(self._engine)
        logger.warning("Database tables dropped.")
