"""Product API router: cache-aside reads and cache-invalidating writes."""

from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.catalog.api.http.deps import get_product_service
from src.catalog.core.services import ProductService
from src.catalog.entities.service.product import Product, ProductInput, ProductPage

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductPage)
@router.get("/", response_model=ProductPage, include_in_schema=False)
def list_products(
    page: int = Query(default=0, ge=0),
    size: int = Query(default=20, ge=1, le=100),
    service: ProductService = Depends(get_product_service),
) -> ProductPage:
    """List available products, newest first."""
    return service.list_products(page, size)


@router.get("/search", response_model=list[Product])
def search_products(
    q: str = Query(min_length=1, max_length=255),
    service: ProductService = Depends(get_product_service),
) -> list[Product]:
    """Case-insensitive search on product names."""
    if not q.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Search query must not be blank",
        )
    return service.search_products(q)


@router.get("/sku/{sku}", response_model=Product)
def get_product_by_sku(
    sku: str,
    service: ProductService = Depends(get_product_service),
) -> Product:
    product = service.get_product_by_sku(sku)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/category/{category_id}", response_model=list[Product])
def list_by_category(
    category_id: int,
    service: ProductService = Depends(get_product_service),
) -> list[Product]:
    return service.list_by_category(category_id)


@router.get("/price-range", response_model=list[Product])
def list_by_price_range(
    min_price: Decimal = Query(alias="minPrice", ge=0),
    max_price: Decimal = Query(alias="maxPrice", ge=0),
    service: ProductService = Depends(get_product_service),
) -> list[Product]:
    """Available products priced within [minPrice, maxPrice]."""
    return service.list_by_price_range(min_price, max_price)


@router.get("/new-arrivals", response_model=list[Product])
def new_arrivals(service: ProductService = Depends(get_product_service)) -> list[Product]:
    return service.new_arrivals()


@router.get("/{product_id}", response_model=Product)
def get_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
) -> Product:
    """Get a product by ID."""
    product = service.get_product(str(product_id))
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
@router.post(
    "/",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
def create_product(
    data: ProductInput,
    service: ProductService = Depends(get_product_service),
) -> Product:
    """Create a new product."""
    return service.create_product(data)


@router.put("/{product_id}", response_model=Product)
def update_product(
    product_id: UUID,
    data: ProductInput,
    service: ProductService = Depends(get_product_service),
) -> Product:
    """Replace a product."""
    return service.update_product(str(product_id), data)


@router.delete("/{product_id}")
def delete_product(
    product_id: UUID,
    category_id: int | None = Query(default=None, alias="categoryId"),
    service: ProductService = Depends(get_product_service),
) -> dict[str, str]:
    """Delete a product."""
    deleted = service.delete_product(str(product_id), category_id)
    return {"message": f"Product {deleted.id} deleted successfully"}
