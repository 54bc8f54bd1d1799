"""
Review API routes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import get_current_user, require_admin, require_customer, require_vendor
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.common import MessageResponse
from marketplace_api.schemas.reviews import (
    HelpfulResponse,
    ProductReviewsResponse,
    ReviewableItem,
    ReviewCreate,
    ReviewModeration,
    ReviewResponse,
    ReviewUpdate,
    VendorReply,
)
from marketplace_api.services.review_service import review_service, serialize_review

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("/", response_model=ReviewResponse, status_code=201)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """Review a product from one of your delivered orders"""
    review = await review_service.create_review(db, current_user, payload.model_dump())
    return serialize_review(review)


@router.get("/product/{product_id}", response_model=ProductReviewsResponse)
async def get_product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort: str = Query("newest"),
    db: AsyncSession = Depends(get_db),
):
    """Approved reviews for a product with the star distribution"""
    return await review_service.get_product_reviews(db, product_id, page, limit, rating, sort)


@router.get("/my-reviews")
async def get_my_reviews(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await review_service.get_customer_reviews(db, current_user.id, page, limit)
    return {"success": True, **result}


@router.get("/reviewable", response_model=List[ReviewableItem])
async def get_reviewable(current_user: User = Depends(require_customer), db: AsyncSession = Depends(get_db)):
    """Delivered products you have not reviewed yet"""
    return await review_service.get_reviewable(db, current_user.id)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: int,
    payload: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.update_review(db, review_id, current_user, payload.model_dump(exclude_unset=True))
    return serialize_review(review)


@router.delete("/{review_id}", response_model=MessageResponse)
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await review_service.delete_review(db, review_id, current_user)
    return MessageResponse(message="Review deleted successfully")


@router.post("/{review_id}/helpful", response_model=HelpfulResponse)
async def mark_helpful(
    review_id: int,
    _: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return HelpfulResponse(helpful_count=await review_service.mark_helpful(db, review_id))


@router.post("/{review_id}/respond", response_model=ReviewResponse)
async def respond_to_review(
    review_id: int,
    payload: VendorReply,
    current_user: User = Depends(require_vendor),
    db: AsyncSession = Depends(get_db),
):
    """Reply as the product's prime vendor"""
    review = await review_service.respond(db, review_id, current_user, payload.comment)
    return serialize_review(review)


@router.put("/{review_id}/moderate", response_model=ReviewResponse)
async def moderate_review(
    review_id: int,
    payload: ReviewModeration,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.moderate(db, review_id, current_user, payload.status)
    return serialize_review(review)
