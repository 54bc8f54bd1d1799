"""
Review service: verified-purchase reviews, helpful votes, vendor replies
and moderation.
"""
import logging
import math
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace_api.core.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from marketplace_api.database.models import (
    Order,
    OrderStatus,
    Product,
    Review,
    ReviewStatus,
    User,
    UserRole,
)
from marketplace_api.schemas.reviews import ReviewableItem, ReviewResponse, VendorResponseView

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW_MESSAGE = "You have already reviewed this product"

REVIEW_SORTS = {
    "newest": (Review.created_at.desc(), Review.id.desc()),
    "oldest": (Review.created_at.asc(), Review.id.asc()),
    "rating_high": (Review.rating.desc(), Review.created_at.desc()),
    "rating_low": (Review.rating.asc(), Review.created_at.desc()),
    "helpful": (Review.helpful_count.desc(), Review.created_at.desc()),
}


def serialize_review(review: Review) -> ReviewResponse:
    """Review row to its API shape (customer must be eager-loaded)"""
    vendor_response = None
    if review.vendor_response_comment:
        vendor_response = VendorResponseView(
            comment=review.vendor_response_comment,
            responded_at=review.vendor_response_at,
            responded_by=review.vendor_response_by,
        )
    return ReviewResponse(
        id=review.id,
        product_id=review.product_id,
        customer_id=review.customer_id,
        customer_name=review.customer.name if review.customer else None,
        order_id=review.order_id,
        rating=review.rating,
        title=review.title,
        comment=review.comment,
        images=review.images or [],
        is_verified_purchase=review.is_verified_purchase,
        helpful_count=review.helpful_count,
        status=review.status,
        vendor_response=vendor_response,
        created_at=review.created_at,
        updated_at=review.updated_at,
    )


class ReviewService:
    """Review rules live here; routers only translate HTTP"""

    async def _load(self, db: AsyncSession, review_id: int) -> Review:
        result = await db.execute(
            select(Review)
            .options(selectinload(Review.customer))
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = result.scalar_one_or_none()
        if not review:
            raise NotFoundError("Review not found")
        return review

    async def create_review(self, db: AsyncSession, customer: User, data: dict) -> Review:
        """Create a review for a product from one of the customer's delivered orders"""
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(
                Order.id == data["order_id"],
                Order.customer_id == customer.id,
                Order.status == OrderStatus.DELIVERED,
            )
        )
        order = result.scalar_one_or_none()
        if not order:
            raise BadRequestError("Invalid order or order not delivered yet")

        if not any(item.product_id == data["product_id"] for item in order.items):
            raise BadRequestError("Product not found in this order")

        existing = await db.execute(
            select(Review.id).where(
                Review.product_id == data["product_id"],
                Review.order_id == data["order_id"],
                Review.customer_id == customer.id,
            )
        )
        if existing.first():
            raise BadRequestError(DUPLICATE_REVIEW_MESSAGE)

        review = Review(customer_id=customer.id, is_verified_purchase=True, **data)
        db.add(review)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race against a concurrent submission of the same triple
            await db.rollback()
            raise BadRequestError(DUPLICATE_REVIEW_MESSAGE)

        logger.info(f"Review {review.id} created for product {review.product_id} by {customer.id}")
        return await self._load(db, review.id)

    async def get_rating_summary(self, db: AsyncSession, product_id: int) -> dict:
        result = await db.execute(
            select(Review.rating, func.count(Review.id))
            .where(Review.product_id == product_id, Review.status == ReviewStatus.APPROVED)
            .group_by(Review.rating)
        )
        distribution = {star: 0 for star in range(1, 6)}
        for rating, count in result.all():
            distribution[rating] = count

        total = sum(distribution.values())
        average = sum(star * count for star, count in distribution.items()) / total if total else 0
        return {
            "average_rating": round(average, 1),
            "total_reviews": total,
            "distribution": distribution,
        }

    async def get_product_reviews(
        self,
        db: AsyncSession,
        product_id: int,
        page: int = 1,
        limit: int = 10,
        rating: Optional[int] = None,
        sort: str = "newest",
    ) -> dict:
        """Approved reviews of a product with the star histogram"""
        conditions = [Review.product_id == product_id, Review.status == ReviewStatus.APPROVED]
        if rating is not None:
            conditions.append(Review.rating == rating)

        total = (await db.execute(select(func.count(Review.id)).where(*conditions))).scalar() or 0
        result = await db.execute(
            select(Review)
            .options(selectinload(Review.customer))
            .where(*conditions)
            .order_by(*REVIEW_SORTS.get(sort, REVIEW_SORTS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return {
            "reviews": [serialize_review(review) for review in result.scalars().all()],
            "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit), "limit": limit},
            "rating_summary": await self.get_rating_summary(db, product_id),
        }

    async def get_customer_reviews(self, db: AsyncSession, customer_id: str, page: int = 1, limit: int = 10) -> dict:
        condition = Review.customer_id == customer_id
        total = (await db.execute(select(func.count(Review.id)).where(condition))).scalar() or 0
        result = await db.execute(
            select(Review)
            .options(selectinload(Review.customer))
            .where(condition)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return {
            "reviews": [serialize_review(review) for review in result.scalars().all()],
            "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit), "limit": limit},
        }

    async def get_reviewable(self, db: AsyncSession, customer_id: str) -> List[ReviewableItem]:
        """Delivered order lines the customer has not reviewed yet"""
        orders = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.customer_id == customer_id, Order.status == OrderStatus.DELIVERED)
            .order_by(Order.created_at.desc())
        )
        orders = list(orders.scalars().all())
        if not orders:
            return []

        reviewed = await db.execute(
            select(Review.order_id, Review.product_id).where(Review.customer_id == customer_id)
        )
        reviewed_pairs = {(order_id, product_id) for order_id, product_id in reviewed.all()}

        product_ids = {item.product_id for order in orders for item in order.items}
        products = await db.execute(select(Product).where(Product.id.in_(product_ids)))
        product_map = {product.id: product for product in products.scalars().all()}

        reviewable = []
        for order in orders:
            for item in order.items:
                product = product_map.get(item.product_id)
                if not product or (order.id, item.product_id) in reviewed_pairs:
                    continue
                reviewable.append(
                    ReviewableItem(
                        order_id=order.id,
                        product_id=product.id,
                        product_name=product.name,
                        product_image=product.images[0] if product.images else None,
                        delivered_at=order.updated_at,
                    )
                )
        return reviewable

    async def update_review(self, db: AsyncSession, review_id: int, customer: User, updates: dict) -> Review:
        review = await self._load(db, review_id)
        if review.customer_id != customer.id:
            raise PermissionDeniedError("Not authorized to update this review")
        for field, value in updates.items():
            setattr(review, field, value)
        await db.commit()
        return await self._load(db, review_id)

    async def delete_review(self, db: AsyncSession, review_id: int, user: User):
        review = await self._load(db, review_id)
        if user.role != UserRole.ADMIN and review.customer_id != user.id:
            raise PermissionDeniedError("Not authorized to delete this review")
        await db.delete(review)
        await db.commit()
        logger.info(f"Review {review_id} deleted by {user.id}")

    async def mark_helpful(self, db: AsyncSession, review_id: int) -> int:
        """Atomically increment the helpful counter and return the new value"""
        result = await db.execute(
            update(Review)
            .where(Review.id == review_id)
            .values(helpful_count=Review.helpful_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Review not found")
        await db.commit()
        count = await db.execute(select(Review.helpful_count).where(Review.id == review_id))
        return count.scalar_one()

    async def respond(self, db: AsyncSession, review_id: int, vendor: User, comment: str) -> Review:
        """Vendor reply; only the product's prime vendor may respond"""
        review = await self._load(db, review_id)
        product = await db.get(Product, review.product_id)
        if not product or not product.prime_vendor_id or product.prime_vendor_id != vendor.id:
            raise PermissionDeniedError("Not authorized to respond to this review")

        review.vendor_response_comment = comment
        review.vendor_response_at = datetime.utcnow()
        review.vendor_response_by = vendor.id
        await db.commit()
        return await self._load(db, review_id)

    async def moderate(self, db: AsyncSession, review_id: int, admin: User, status: ReviewStatus) -> Review:
        review = await self._load(db, review_id)
        review.status = status
        review.moderated_by = admin.id
        review.moderated_at = datetime.utcnow()
        await db.commit()
        logger.info(f"Review {review_id} moderated to {status.value} by {admin.id}")
        return await self._load(db, review_id)


# Global service instance
review_service = ReviewService()
