"""Product entity and repository tests.

The repository runs against a real in-memory SQLite database.
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.catalog.core.exceptions import DuplicateSkuError, ProductNotFoundError
from src.catalog.entities.service.product import (
    Product,
    ProductInput,
    ProductPage,
    ProductRepository,
    ProductTable,
)


class TestProductEntity:
    """Test Product domain entity."""

    def test_product_creation(self):
        product = Product(
            name="Widget",
            price=Decimal("19.99"),
            quantity=5,
            category_id=1,
            sku="SKU-001",
        )

        assert product.id is not None
        assert product.is_available is True
        assert product.description is None
        assert product.available is True

    def test_available_requires_stock(self):
        product = Product(
            name="Widget", price=Decimal("1"), quantity=0, category_id=1, sku="S"
        )
        assert product.is_available is True
        assert product.available is False

    def test_price_validation(self):
        with pytest.raises(ValidationError):
            ProductInput(name="W", price=Decimal("-1"), quantity=1, category_id=1, sku="S")
        with pytest.raises(ValidationError):
            ProductInput(name="W", price=Decimal("1.999"), quantity=1, category_id=1, sku="S")

    def test_required_fields(self):
        with pytest.raises(ValidationError):
            ProductInput(name="", price=Decimal("1"), quantity=1, category_id=1, sku="S")
        with pytest.raises(ValidationError):
            ProductInput(name="W", price=Decimal("1"), quantity=-1, category_id=1, sku="S")

    def test_equality_ignores_timestamps(self):
        product = Product(
            name="Widget", price=Decimal("2.50"), quantity=1, category_id=1, sku="S"
        )
        copy = product.model_copy(update={"updated_at": product.updated_at.replace(year=2000)})

        assert product == copy
        assert hash(product) == hash(copy)
        assert product != product.model_copy(update={"quantity": 2})

    def test_json_keeps_decimal_precision(self):
        product = Product(
            name="Widget", price=Decimal("19.99"), quantity=1, category_id=1, sku="S"
        )
        restored = Product.model_validate_json(product.model_dump_json())
        assert restored.price == Decimal("19.99")
        assert '"price":"19.99"' in product.model_dump_json()

    def test_page_total_pages(self):
        assert ProductPage(items=[], page=0, size=20, total=41).total_pages == 3
        assert ProductPage(items=[], page=0, size=20, total=0).total_pages == 0


class TestProductRepository:
    """Test ProductRepository against an in-memory database."""

    def test_create_and_get(self, session, product_input_factory):
        repo = ProductRepository(session)

        created = repo.create(product_input_factory(sku="SKU-001", price=Decimal("19.99")))
        session.commit()

        assert session.get(ProductTable, created.id) is not None
        fetched = repo.get(created.id)
        assert fetched == created
        assert fetched.price == Decimal("19.99")
        assert repo.get_by_sku("SKU-001") == created

    def test_get_missing(self, session):
        repo = ProductRepository(session)
        assert repo.get("missing") is None
        assert repo.get_by_sku("missing") is None

    def test_duplicate_sku(self, session, product_input_factory):
        repo = ProductRepository(session)
        repo.create(product_input_factory(sku="DUP"))
        session.commit()

        with pytest.raises(DuplicateSkuError):
            repo.create(product_input_factory(sku="DUP"))

    def test_replace(self, session, product_input_factory):
        repo = ProductRepository(session)
        created = repo.create(product_input_factory(name="Old"))
        session.commit()

        replaced = repo.replace(created.id, product_input_factory(name="New", quantity=3))
        session.commit()

        assert replaced.id == created.id
        assert replaced.name == "New"
        assert replaced.quantity == 3
        assert replaced.created_at == created.created_at

    def test_replace_missing(self, session, product_input_factory):
        with pytest.raises(ProductNotFoundError):
            ProductRepository(session).replace("missing", product_input_factory())

    def test_replace_with_taken_sku(self, session, product_input_factory):
        repo = ProductRepository(session)
        repo.create(product_input_factory(sku="TAKEN"))
        other = repo.create(product_input_factory())
        session.commit()

        with pytest.raises(DuplicateSkuError):
            repo.replace(other.id, product_input_factory(sku="TAKEN"))

    def test_delete_returns_removed_record(self, session, product_input_factory):
        repo = ProductRepository(session)
        keep = repo.create(product_input_factory())
        gone = repo.create(product_input_factory())
        session.commit()

        deleted = repo.delete(gone.id)
        session.commit()

        assert deleted == gone
        assert repo.get(gone.id) is None
        assert repo.get(keep.id) == keep
        assert repo.delete(gone.id) is None

    def test_list_available_pages(self, session, product_input_factory):
        repo = ProductRepository(session)
        for _ in range(5):
            repo.create(product_input_factory())
        repo.create(product_input_factory(is_available=False))
        session.commit()

        first = repo.list_available(0, 2)
        last = repo.list_available(2, 2)

        assert first.total == 5
        assert len(first.items) == 2
        assert len(last.items) == 1
        ids = {p.id for p in first.items} | {p.id for p in repo.list_available(1, 2).items}
        assert len(ids | {p.id for p in last.items}) == 5

    def test_search_is_case_insensitive_substring(self, session, product_input_factory):
        repo = ProductRepository(session)
        repo.create(product_input_factory(name="Gaming LAPTOP 15"))
        repo.create(product_input_factory(name="Laptop sleeve"))
        repo.create(product_input_factory(name="Phone"))
        repo.create(product_input_factory(name="Hidden laptop", is_available=False))
        session.commit()

        names = [p.name for p in repo.search("laptop")]

        assert names == ["Gaming LAPTOP 15", "Laptop sleeve"]

    def test_search_escapes_wildcards(self, session, product_input_factory):
        repo = ProductRepository(session)
        repo.create(product_input_factory(name="100% cotton"))
        repo.create(product_input_factory(name="1000 cotton"))
        session.commit()

        assert [p.name for p in repo.search("100%")] == ["100% cotton"]

    def test_list_by_category(self, session, product_input_factory):
        repo = ProductRepository(session)
        repo.create(product_input_factory(name="B", category_id=4))
        repo.create(product_input_factory(name="A", category_id=4))
        repo.create(product_input_factory(name="C", category_id=5))
        session.commit()

        assert [p.name for p in repo.list_by_category(4)] == ["A", "B"]
        assert repo.list_by_category(99) == []

    def test_new_arrivals_limit(self, session, product_input_factory):
        repo = ProductRepository(session)
        for _ in range(4):
            repo.create(product_input_factory())
        session.commit()

        assert len(repo.new_arrivals(3)) == 3
