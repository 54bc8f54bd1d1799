"""
Recommendation API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketplace_api.core.auth import get_current_user, get_optional_user
from marketplace_api.database.models import User
from marketplace_api.engines.recommendation import RecommendationEngine, recommendation_engine
from marketplace_api.schemas.recommendations import HomepageResponse, RecommendationListResponse

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def get_recommendation_engine() -> RecommendationEngine:
    return recommendation_engine


@router.get("/trending", response_model=RecommendationListResponse)
async def get_trending(
    limit: int = Query(10, ge=1, le=50),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return RecommendationListResponse(data=await engine.get_trending(limit))


@router.get("/top-rated", response_model=RecommendationListResponse)
async def get_top_rated(
    limit: int = Query(10, ge=1, le=50),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return RecommendationListResponse(data=await engine.get_top_rated(limit))


@router.get("/homepage", response_model=HomepageResponse)
async def get_homepage(
    current_user: Optional[User] = Depends(get_optional_user),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    """Trending, top-rated and personal picks in one call"""
    customer_id = current_user.id if current_user else None
    return HomepageResponse(data=await engine.get_homepage(customer_id))


@router.get("/similar/{product_id}", response_model=RecommendationListResponse)
async def get_similar(
    product_id: int,
    limit: int = Query(6, ge=1, le=50),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return RecommendationListResponse(data=await engine.get_similar(product_id, limit))


@router.get("/frequently-bought/{product_id}", response_model=RecommendationListResponse)
async def get_frequently_bought_together(
    product_id: int,
    limit: int = Query(5, ge=1, le=50),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return RecommendationListResponse(data=await engine.get_frequently_bought_together(product_id, limit))


@router.get("/personalized", response_model=RecommendationListResponse)
async def get_personalized(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    engine: RecommendationEngine = Depends(get_recommendation_engine),
):
    return RecommendationListResponse(data=await engine.get_personalized(current_user.id, limit))
