"""
Pydantic schemas for product reviews
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from marketplace_api.database.models import ReviewStatus
from marketplace_api.schemas.common import CamelModel, Pagination


class ReviewCreate(CamelModel):
    product_id: int
    order_id: int
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)
    images: List[str] = Field(default_factory=list, max_length=5)


class ReviewUpdate(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)
    images: Optional[List[str]] = Field(None, max_length=5)


class VendorReply(CamelModel):
    comment: str = Field(..., min_length=1, max_length=2000)


class ReviewModeration(CamelModel):
    status: ReviewStatus


class VendorResponseView(CamelModel):
    comment: Optional[str] = None
    responded_at: Optional[datetime] = None
    responded_by: Optional[str] = None


class ReviewResponse(CamelModel):
    id: int
    product_id: int
    customer_id: str
    customer_name: Optional[str] = None
    order_id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    images: List[str] = []
    is_verified_purchase: bool
    helpful_count: int
    status: ReviewStatus
    vendor_response: Optional[VendorResponseView] = None
    created_at: datetime
    updated_at: datetime


class RatingSummary(CamelModel):
    average_rating: float
    total_reviews: int
    distribution: Dict[int, int]


class ProductReviewsResponse(CamelModel):
    success: bool = True
    reviews: List[ReviewResponse]
    pagination: Pagination
    rating_summary: RatingSummary


class HelpfulResponse(CamelModel):
    success: bool = True
    helpful_count: int


class ReviewableItem(CamelModel):
    order_id: int
    product_id: int
    product_name: str
    product_image: Optional[str] = None
    delivered_at: datetime
