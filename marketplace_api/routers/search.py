"""
Search API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.database import get_db
from marketplace_api.engines.search import SearchEngine, search_engine
from marketplace_api.schemas.search import (
    FilterOptions,
    PopularSearch,
    SearchQuery,
    SearchResponse,
    SortOption,
    Suggestion,
)

router = APIRouter(prefix="/search", tags=["search"])


def get_search_engine() -> SearchEngine:
    return search_engine


@router.get("/", response_model=SearchResponse)
async def search_products(
    q: Optional[str] = Query(None),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    brand_id: Optional[List[int]] = Query(None, alias="brandId"),
    min_price: Optional[float] = Query(None, ge=0, alias="minPrice"),
    max_price: Optional[float] = Query(None, ge=0, alias="maxPrice"),
    is_prime: Optional[bool] = Query(None, alias="isPrime"),
    min_rating: Optional[float] = Query(None, ge=0, le=5, alias="minRating"),
    sort_by: SortOption = Query("relevance", alias="sortBy"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    engine: SearchEngine = Depends(get_search_engine),
    db: AsyncSession = Depends(get_db),
):
    """Search active products with filters, sorting and rating enrichment"""
    query = SearchQuery(
        q=q,
        category_id=category_id,
        brand_id=brand_id,
        min_price=min_price,
        max_price=max_price,
        is_prime=is_prime,
        min_rating=min_rating,
        sort_by=sort_by,
        page=page,
        limit=limit,
    )
    return await engine.advanced_search(db, query)


@router.get("/suggestions", response_model=List[Suggestion])
async def get_suggestions(
    q: Optional[str] = Query(None),
    limit: int = Query(5, ge=1, le=20),
    engine: SearchEngine = Depends(get_search_engine),
    db: AsyncSession = Depends(get_db),
):
    return await engine.get_suggestions(db, q, limit)


@router.get("/filters", response_model=FilterOptions)
async def get_filter_options(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    q: Optional[str] = Query(None),
    engine: SearchEngine = Depends(get_search_engine),
    db: AsyncSession = Depends(get_db),
):
    return await engine.get_filter_options(db, category_id, q)


@router.get("/popular", response_model=List[PopularSearch])
async def get_popular_searches(
    engine: SearchEngine = Depends(get_search_engine),
    db: AsyncSession = Depends(get_db),
):
    return await engine.get_popular_searches(db)
