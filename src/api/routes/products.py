"""Product endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_products
from src.application.dto.requests import CreateProductRequest
from src.application.dto.responses import (
    ErrorResponse,
    ProductListResponse,
    ProductResponse,
)
from src.core.entities.product import Product
from src.core.exceptions import ProductNotFoundError
from src.core.interfaces import IProductStore

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    store: IProductStore = Depends(get_products),
) -> ProductResponse:
    """Register a product. Its stock starts at 0 until the first movement."""
    product = Product(
        id=request.id or str(uuid.uuid4()),
        sku=request.sku,
        name=request.name,
        brand=request.brand,
        category=request.category,
        unit=request.unit,
        minimum_stock=request.minimum_stock,
    )
    product = await store.create_product(product)
    return ProductResponse.model_validate(product)


@router.get("", response_model=ProductListResponse)
async def list_products(
    category: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    store: IProductStore = Depends(get_products),
) -> ProductListResponse:
    """List products ordered by name."""
    products = await store.list_products(limit=limit, offset=offset, category=category)
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(
    product_id: str,
    store: IProductStore = Depends(get_products),
) -> ProductResponse:
    """Get a product by ID."""
    product = await store.get_product(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ProductResponse.model_validate(product)
