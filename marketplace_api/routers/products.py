"""
Product API routes
"""
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import require_admin, require_admin_or_vendor
from marketplace_api.core.config import settings
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.engines.recommendation import enrich_with_ratings
from marketplace_api.schemas.catalog import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
    RatedProduct,
)
from marketplace_api.services.product_service import product_service

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/", response_model=ProductListResponse)
async def get_products(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    brand_id: Optional[int] = Query(None, alias="brandId"),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated active products, newest first"""
    products, total = await product_service.list_products(db, page, limit, category_id, brand_id)
    return ProductListResponse(
        products=await enrich_with_ratings(db, products),
        total=total,
        page=page,
        pages=math.ceil(total / limit),
        limit=limit,
    )


@router.get("/{product_id}", response_model=RatedProduct)
async def get_product(product_id: int, db: AsyncSession = Depends(get_db)):
    """Get a product with its rating aggregate"""
    product = await product_service.get_product(db, product_id)
    enriched = await enrich_with_ratings(db, [product])
    return enriched[0]


@router.post("/", response_model=ProductResponse, status_code=201)
async def create_product(
    payload: ProductCreate,
    current_user: User = Depends(require_admin_or_vendor),
    db: AsyncSession = Depends(get_db),
):
    return await product_service.create_product(db, payload.model_dump(), current_user)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    payload: ProductUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await product_service.update_product(db, product_id, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=ProductResponse)
async def delete_product(
    product_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the product is deactivated"""
    return await product_service.delete_product(db, product_id)
