"""Product repository: data access for the products table."""

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from src.catalog.core.exceptions import DuplicateSkuError, ProductNotFoundError
from src.catalog.entities.core._base import utcnow

from .entity import Product, ProductInput, ProductPage
from .table import ProductTable


class ProductRepository:
    """Data-access layer for products.

    The repository flushes but never commits; transaction boundaries belong
    to the caller so the cache can be touched only after a successful commit.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @staticmethod
    def _to_entity(row: ProductTable) -> Product:
        return Product.model_validate(row, from_attributes=True)

    def _to_entities(self, rows: Sequence[ProductTable]) -> list[Product]:
        return [self._to_entity(row) for row in rows]

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return self._to_entity(row)

    def get_by_sku(self, sku: str) -> Product | None:
        statement = select(ProductTable).where(ProductTable.sku == sku)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return self._to_entity(row)

    def exists_by_sku(self, sku: str, exclude_id: str | None = None) -> bool:
        statement = select(ProductTable.id).where(ProductTable.sku == sku)
        if exclude_id is not None:
            statement = statement.where(ProductTable.id != exclude_id)
        return self._session.exec(statement).first() is not None

    def _flush(self, row: ProductTable) -> Product:
        try:
            self._session.flush()
        except IntegrityError as e:
            self._session.rollback()
            raise DuplicateSkuError(row.sku) from e
        self._session.refresh(row)
        return self._to_entity(row)

    def create(self, data: ProductInput) -> Product:
        """Insert a new product; the store assigns its id and timestamps."""
        if self.exists_by_sku(data.sku):
            raise DuplicateSkuError(data.sku)

        row = ProductTable(**data.model_dump())
        self._session.add(row)
        return self._flush(row)

    def replace(self, product_id: str, data: ProductInput) -> Product:
        """Replace every writable field of an existing product."""
        row = self._session.get(ProductTable, product_id)
        if row is None:
            raise ProductNotFoundError(product_id)

        if data.sku != row.sku and self.exists_by_sku(data.sku, exclude_id=product_id):
            raise DuplicateSkuError(data.sku)

        for field, value in data.model_dump().items():
            setattr(row, field, value)
        row.updated_at = utcnow()
        self._session.add(row)
        return self._flush(row)

    def delete(self, product_id: str) -> Product | None:
        """Delete a product and return the record as it was before deletion."""
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None

        deleted = self._to_entity(row)
        self._session.delete(row)
        self._session.flush()
        return deleted

    def _available(self):
        return select(ProductTable).where(ProductTable.is_available == True)  # noqa: E712

    def list_available(self, page: int, size: int) -> ProductPage:
        statement = (
            self._available()
            .order_by(col(ProductTable.created_at).desc(), col(ProductTable.id))
            .offset(page * size)
            .limit(size)
        )
        total_statement = (
            select(func.count())
            .select_from(ProductTable)
            .where(ProductTable.is_available == True)  # noqa: E712
        )
        rows = self._session.exec(statement).all()
        total = self._session.exec(total_statement).one()
        return ProductPage(items=self._to_entities(rows), page=page, size=size, total=total)

    def list_by_category(self, category_id: int) -> list[Product]:
        statement = (
            self._available()
            .where(ProductTable.category_id == category_id)
            .order_by(col(ProductTable.name), col(ProductTable.id))
        )
        return self._to_entities(self._session.exec(statement).all())

    def list_by_price_range(self, min_price: Decimal, max_price: Decimal) -> list[Product]:
        statement = (
            self._available()
            .where(col(ProductTable.price).between(min_price, max_price))
            .order_by(col(ProductTable.price), col(ProductTable.id))
        )
        return self._to_entities(self._session.exec(statement).all())

    def search(self, query: str) -> list[Product]:
        """Case-insensitive substring match on the product name."""
        statement = (
            self._available()
            .where(col(ProductTable.name).icontains(query, autoescape=True))
            .order_by(col(ProductTable.name), col(ProductTable.id))
        )
        return self._to_entities(self._session.exec(statement).all())

    def new_arrivals(self, limit: int) -> list[Product]:
        """Newest products that are both flagged available and in stock."""
        statement = (
            self._available()
            .where(ProductTable.quantity > 0)
            .order_by(col(ProductTable.created_at).desc(), col(ProductTable.id))
            .limit(limit)
        )
        return self._to_entities(self._session.exec(statement).all())
