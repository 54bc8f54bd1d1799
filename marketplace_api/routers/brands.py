"""
Brand API routes
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import require_admin, require_catalog_editor
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.catalog import BrandCreate, BrandResponse, BrandUpdate
from marketplace_api.services.brand_service import brand_service

router = APIRouter(prefix="/brands", tags=["brands"])


@router.get("/", response_model=List[BrandResponse])
async def get_brands(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
):
    """Get brands sorted by name"""
    return await brand_service.list_brands(db, include_inactive)


@router.get("/{brand_id}", response_model=BrandResponse)
async def get_brand(brand_id: int, db: AsyncSession = Depends(get_db)):
    return await brand_service.get_brand(db, brand_id)


@router.post("/", response_model=BrandResponse, status_code=201)
async def create_brand(
    payload: BrandCreate,
    _: User = Depends(require_catalog_editor),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.create_brand(db, payload.model_dump())


@router.put("/{brand_id}", response_model=BrandResponse)
async def update_brand(
    brand_id: int,
    payload: BrandUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await brand_service.update_brand(db, brand_id, payload.model_dump(exclude_unset=True))


@router.delete("/{brand_id}", response_model=BrandResponse)
async def delete_brand(
    brand_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the brand is deactivated"""
    return await brand_service.delete_brand(db, brand_id)
