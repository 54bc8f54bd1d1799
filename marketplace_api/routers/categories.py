"""
Category API routes
"""
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import require_admin, require_catalog_editor
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.catalog import CategoryCreate, CategoryResponse, CategoryTreeNode, CategoryUpdate
from marketplace_api.services.category_service import category_service

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("/", response_model=List[CategoryTreeNode])
async def get_categories(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
):
    """Get the hierarchical category tree"""
    return await category_service.get_tree(db, include_inactive)


@router.get("/flat", response_model=List[CategoryResponse])
async def get_categories_flat(
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
):
    """Get all categories as a flat list"""
    return await category_service.list_categories(db, include_inactive)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    return await category_service.get_category(db, category_id)


@router.post("/", response_model=CategoryResponse, status_code=201)
async def create_category(
    payload: CategoryCreate,
    _: User = Depends(require_catalog_editor),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.create_category(db, payload.model_dump())


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await category_service.update_category(db, category_id, payload.model_dump(exclude_unset=True))


@router.delete("/{category_id}", response_model=CategoryResponse)
async def delete_category(
    category_id: int,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the category is deactivated"""
    return await category_service.delete_category(db, category_id)
