"""Cache administration endpoints for the product cache."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from src.catalog.api.http.deps import get_product_service
from src.catalog.core.services import ProductService
from src.catalog.entities.service.product import Product

router = APIRouter(prefix="/api/products", tags=["cache"])


@router.post("/cache/prime")
def prime_cache(service: ProductService = Depends(get_product_service)) -> dict[str, int]:
    """Warm the cache with top products, category lists and new arrivals."""
    return service.prime_cache().as_dict()


@router.delete("/cache/clear")
def clear_cache(service: ProductService = Depends(get_product_service)) -> dict[str, int]:
    """Evict every product-owned cache key."""
    return {"evicted": service.clear_cache()}


@router.get("/cache/stats")
def cache_stats(service: ProductService = Depends(get_product_service)) -> dict[str, Any]:
    return service.cache_stats()


@router.post("/{product_id}/cache/refresh", response_model=Product)
def refresh_product_cache(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
) -> Product:
    """Reload one product from the database into the cache."""
    product = service.refresh_product_cache(str(product_id))
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
