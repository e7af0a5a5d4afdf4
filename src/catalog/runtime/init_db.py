"""Database initialization script."""

from src.catalog.core.services.database.db_manage import DbManageService
from src.catalog.runtime.context import get_config


def init_db() -> None:
    """Create all database tables."""
    DbManageService(get_config()).create_all()


if __name__ == "__main__":
    init_db()
