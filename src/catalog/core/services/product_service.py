"""Product service: cache-aside reads and write-through invalidation."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from decimal import Decimal

from loguru import logger
from pydantic import TypeAdapter
from sqlmodel import Session

from src.catalog.core.cache import CacheService, keys
from src.catalog.core.exceptions import InvalidPriceRangeError, ProductNotFoundError
from src.catalog.entities.service.product import (
    Product,
    ProductInput,
    ProductPage,
    ProductRepository,
)
from src.catalog.runtime.config.config_data import CacheConfig

PRODUCT_ADAPTER = TypeAdapter(Product)
PRODUCT_LIST_ADAPTER = TypeAdapter(list[Product])
PRODUCT_PAGE_ADAPTER = TypeAdapter(ProductPage)

# Families whose contents can change on any write.
WRITE_SENSITIVE_FAMILIES = (keys.PAGE, keys.SEARCH, keys.PRICE, keys.NEW_ARRIVALS)


@dataclass
class PrimeReport:
    products: int = 0
    categories: int = 0
    category_products: int = 0
    new_arrivals: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def _product_indexes(product: Product) -> list[str]:
    return [keys.product_index(product.id)]


def _collection_indexes(family: str):
    """Index keys for a cached list: its family plus every product it holds."""

    def indexes(products: list[Product]) -> list[str]:
        return [keys.family_index(family)] + [
            keys.product_index(product.id) for product in products
        ]

    return indexes


def _page_indexes(page: ProductPage) -> list[str]:
    return _collection_indexes(keys.PAGE)(page.items)


class ProductService:
    """Product reads and writes with a Redis cache in front of the store.

    Reads go through ``CacheService.get_or_load``. Writes commit to the
    store first and only then invalidate cache entries, best-effort; a
    cache failure never rolls back a committed write.
    """

    def __init__(
        self,
        session: Session,
        cache: CacheService,
        config: CacheConfig | None = None,
    ):
        self._session = session
        self._repo = ProductRepository(session)
        self._cache = cache
        self._config = config or CacheConfig()

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    # --- Reads ---

    def get_product(self, product_id: str) -> Product | None:
        return self._cache.get_or_load(
            keys.product(product_id),
            lambda: self._repo.get(product_id),
            PRODUCT_ADAPTER,
            index_keys=_product_indexes,
        )

    def get_product_by_sku(self, sku: str) -> Product | None:
        return self._cache.get_or_load(
            keys.product_sku(sku),
            lambda: self._repo.get_by_sku(sku),
            PRODUCT_ADAPTER,
            index_keys=_product_indexes,
        )

    def list_products(self, page: int = 0, size: int = 20) -> ProductPage:
        return self._cache.get_or_load(
            keys.page(page, size),
            lambda: self._repo.list_available(page, size),
            PRODUCT_PAGE_ADAPTER,
            index_keys=_page_indexes,
        )

    def search_products(self, query: str) -> list[Product]:
        return self._cache.get_or_load(
            keys.search(query),
            lambda: self._repo.search(query.strip()),
            PRODUCT_LIST_ADAPTER,
            index_keys=_collection_indexes(keys.SEARCH),
        )

    def list_by_category(self, category_id: int) -> list[Product]:
        return self._cache.get_or_load(
            keys.category(category_id),
            lambda: self._repo.list_by_category(category_id),
            PRODUCT_LIST_ADAPTER,
            index_keys=_collection_indexes(keys.CATEGORY),
        )

    def list_by_price_range(self, min_price: Decimal, max_price: Decimal) -> list[Product]:
        if min_price > max_price:
            raise InvalidPriceRangeError(
                "minPrice must not be greater than maxPrice",
                details={"min_price": str(min_price), "max_price": str(max_price)},
            )
        return self._cache.get_or_load(
            keys.price_range(min_price, max_price),
            lambda: self._repo.list_by_price_range(min_price, max_price),
            PRODUCT_LIST_ADAPTER,
            index_keys=_collection_indexes(keys.PRICE),
        )

    def new_arrivals(self) -> list[Product]:
        limit = self._config.new_arrivals_limit
        return self._cache.get_or_load(
            keys.new_arrivals(),
            lambda: self._repo.new_arrivals(limit),
            PRODUCT_LIST_ADAPTER,
            index_keys=_collection_indexes(keys.NEW_ARRIVALS),
        )

    # --- Writes ---

    def create_product(self, data: ProductInput) -> Product:
        with self._transaction():
            product = self._repo.create(data)
        logger.info("Created product {} (sku={})", product.id, product.sku)

        self._cache_product(product)
        self._cache.evict(keys.category(product.category_id))
        self._evict_families(WRITE_SENSITIVE_FAMILIES)
        return product

    def update_product(self, product_id: str, data: ProductInput) -> Product:
        existing = self._repo.get(product_id)
        if existing is None:
            raise ProductNotFoundError(product_id)

        with self._transaction():
            product = self._repo.replace(product_id, data)
        logger.info("Updated product {} (sku={})", product.id, product.sku)

        self._cache.evict_index(keys.product_index(product_id))
        self._cache.evict(
            keys.product(product_id),
            *{keys.product_sku(existing.sku), keys.product_sku(product.sku)},
            *{keys.category(existing.category_id), keys.category(product.category_id)},
        )
        self._evict_families(WRITE_SENSITIVE_FAMILIES)
        return product

    def delete_product(self, product_id: str, category_id: int | None = None) -> Product:
        """Delete a product and return the removed record.

        ``category_id`` names the category list to evict; the deleted
        record's own category is used when it is omitted.
        """
        with self._transaction():
            deleted = self._repo.delete(product_id)
            if deleted is None:
                raise ProductNotFoundError(product_id)
        logger.info("Deleted product {} (sku={})", deleted.id, deleted.sku)

        category = category_id if category_id is not None else deleted.category_id
        self._cache.evict(
            keys.product(product_id),
            keys.product_sku(deleted.sku),
            keys.category(category),
        )
        self._evict_families(WRITE_SENSITIVE_FAMILIES)
        self._cache.evict_index(keys.product_index(product_id))
        return deleted

    # --- Administration ---

    def refresh_product_cache(self, product_id: str) -> Product | None:
        """Reload a product from the store and rewrite its direct entries."""
        product = self._repo.get(product_id)
        if product is None:
            self._cache.evict(keys.product(product_id))
            return None
        self._cache_product(product)
        logger.info("Refreshed cache for product {}", product_id)
        return product

    def prime_cache(self) -> PrimeReport:
        """Warm the cache with the hottest products, category lists and new arrivals."""
        report = PrimeReport()

        top = self._repo.list_available(0, self._config.prime_limit).items
        for product in top:
            self._cache_product(product)
        report.products = len(top)

        category_indexes = _collection_indexes(keys.CATEGORY)
        for category_id in self._config.prime_category_ids:
            products = self._repo.list_by_category(category_id)
            self._cache.put(
                keys.category(category_id),
                products,
                PRODUCT_LIST_ADAPTER,
                index_keys=category_indexes(products),
            )
            report.categories += 1
            report.category_products += len(products)

        arrivals = self._repo.new_arrivals(self._config.new_arrivals_limit)
        self._cache.put(
            keys.new_arrivals(),
            arrivals,
            PRODUCT_LIST_ADAPTER,
            index_keys=_collection_indexes(keys.NEW_ARRIVALS)(arrivals),
        )
        report.new_arrivals = len(arrivals)

        logger.info("Cache primed: {}", report.as_dict())
        return report

    def clear_cache(self) -> int:
        return self._cache.clear_all()

    def cache_stats(self) -> dict:
        product_keys = self._cache.count(f"{keys.PRODUCT_PREFIX}:*")
        sku_keys = self._cache.count(keys.product_sku("*"))
        key_counts = {
            "product": product_keys - sku_keys,
            "product_sku": sku_keys,
        }
        for family in keys.FAMILIES:
            key_counts[family] = self._cache.count(keys.family_pattern(family))
        key_counts["index"] = self._cache.count(f"{keys.INDEX_PREFIX}:{keys.PRODUCT_PREFIX}*")

        return {
            **self._cache.stats().as_dict(),
            "reachable": self._cache.ping(),
            "invalidation_strategy": self._config.invalidation_strategy,
            "default_ttl_seconds": self._cache.default_ttl_seconds,
            "keys": key_counts,
        }

    # --- Helpers ---

    def _cache_product(self, product: Product) -> None:
        indexes = _product_indexes(product)
        self._cache.put(keys.product(product.id), product, PRODUCT_ADAPTER, index_keys=indexes)
        self._cache.put(keys.product_sku(product.sku), product, PRODUCT_ADAPTER, index_keys=indexes)

    def _evict_families(self, families: Iterable[str]) -> int:
        evicted = 0
        for family in families:
            if self._config.invalidation_strategy == "scan":
                evicted += self._cache.evict_pattern(keys.family_pattern(family))
            else:
                evicted += self._cache.evict_index(keys.family_index(family))
                if family == keys.NEW_ARRIVALS:
                    evicted += self._cache.evict(keys.new_arrivals())
        logger.debug("Evicted {} collection entries", evicted)
        return evicted
