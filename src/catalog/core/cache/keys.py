"""Cache key namespace for products.

Keys are plain strings built by convention. Collection keys belong to a
family; each family has a SCAN pattern and an index set listing its members.
"""

import hashlib
from decimal import Decimal

PRODUCT_PREFIX = "product"
COLLECTION_PREFIX = "products"
INDEX_PREFIX = "index"

# Collection families
PAGE = "page"
SEARCH = "search"
CATEGORY = "category"
PRICE = "price"
NEW_ARRIVALS = "new-arrivals"

FAMILIES = (PAGE, SEARCH, CATEGORY, PRICE, NEW_ARRIVALS)

# Patterns owned by this service; clear_all never reaches outside them.
OWNED_PATTERNS = (
    f"{PRODUCT_PREFIX}:*",
    f"{COLLECTION_PREFIX}:*",
    f"{INDEX_PREFIX}:{PRODUCT_PREFIX}*",
)


def product(product_id: str) -> str:
    return f"{PRODUCT_PREFIX}:{product_id}"


def product_sku(sku: str) -> str:
    return f"{PRODUCT_PREFIX}:sku:{sku}"


def category(category_id: int) -> str:
    return f"{COLLECTION_PREFIX}:{CATEGORY}:{category_id}"


def page(page_number: int, size: int) -> str:
    return f"{COLLECTION_PREFIX}:{PAGE}:{page_number}:{size}"


def search_hash(query: str) -> str:
    """Stable digest of a normalized search query."""
    normalized = query.strip().lower()
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:16]


def search(query: str) -> str:
    return f"{COLLECTION_PREFIX}:{SEARCH}:{search_hash(query)}"


def _price_bound(value: Decimal) -> str:
    # normalize() alone would render 100 as 1E+2
    return format(value.normalize(), "f")


def price_range(min_price: Decimal, max_price: Decimal) -> str:
    return (
        f"{COLLECTION_PREFIX}:{PRICE}:min:{_price_bound(min_price)}"
        f":max:{_price_bound(max_price)}"
    )


def new_arrivals() -> str:
    return f"{COLLECTION_PREFIX}:{NEW_ARRIVALS}"


def family_pattern(family: str) -> str:
    """SCAN pattern matching every key of a collection family."""
    if family == NEW_ARRIVALS:
        return new_arrivals()
    return f"{COLLECTION_PREFIX}:{family}:*"


def family_index(family: str) -> str:
    """Index set listing the live keys of a collection family."""
    return f"{INDEX_PREFIX}:{COLLECTION_PREFIX}:{family}"


def product_index(product_id: str) -> str:
    """Index set listing every derived key that holds a given product."""
    return f"{INDEX_PREFIX}:{PRODUCT_PREFIX}:{product_id}"
