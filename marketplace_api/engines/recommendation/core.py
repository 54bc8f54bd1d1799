"""
Recommendation Engine Core

Read-only product recommendation strategies over orders and reviews.
Every public method opens its own session from the injected factory, so
independent strategies can run concurrently.
"""
import asyncio
from collections import Counter
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.config import settings
from marketplace_api.core.database import AsyncSessionLocal
from marketplace_api.database.models import Order, OrderItem, OrderStatus, Product, Review, ReviewStatus
from marketplace_api.middleware.logging_middleware import get_logger
from marketplace_api.schemas.catalog import RatedProduct

from .ratings import enrich_with_ratings, to_rated_product

logger = get_logger(__name__)

EXCLUDED_TRENDING_STATUSES = (OrderStatus.CANCELLED, OrderStatus.REJECTED)


class RecommendationEngine:
    """
    Main Recommendation Engine

    Strategies: personalized, similar, trending, top-rated, featured and
    frequently-bought-together, plus the homepage bundle. With fail_soft
    on, a failing strategy logs and yields an empty list.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        fail_soft: bool = True,
        trending_window_days: int = 30,
        top_rated_min_reviews: int = 3,
        order_history: int = 10,
        homepage_size: int = 8,
    ):
        self.session_factory = session_factory
        self.fail_soft = fail_soft
        self.trending_window_days = trending_window_days
        self.top_rated_min_reviews = top_rated_min_reviews
        self.order_history = order_history
        self.homepage_size = homepage_size

    async def _run(
        self, strategy: str, fn: Callable[..., Awaitable[List[RatedProduct]]], *args
    ) -> List[RatedProduct]:
        try:
            async with self.session_factory() as db:
                return await fn(db, *args)
        except Exception as e:
            if not self.fail_soft:
                raise
            logger.error(f"Recommendation strategy '{strategy}' failed: {e}", exc_info=True)
            return []

    # Public API

    async def get_personalized(self, customer_id: str, limit: int = 10) -> List[RatedProduct]:
        return await self._run("personalized", self._personalized, customer_id, limit)

    async def get_similar(self, product_id: int, limit: int = 6) -> List[RatedProduct]:
        return await self._run("similar", self._similar, product_id, limit)

    async def get_trending(self, limit: int = 10) -> List[RatedProduct]:
        return await self._run("trending", self._trending, limit)

    async def get_top_rated(self, limit: int = 10) -> List[RatedProduct]:
        return await self._run("top_rated", self._top_rated, limit)

    async def get_featured(self, limit: int = 10) -> List[RatedProduct]:
        return await self._run("featured", self._featured, limit)

    async def get_frequently_bought_together(self, product_id: int, limit: int = 5) -> List[RatedProduct]:
        return await self._run("frequently_bought", self._frequently_bought_together, product_id, limit)

    async def enrich_with_ratings(self, db: AsyncSession, products: Sequence[Product]) -> List[RatedProduct]:
        return await enrich_with_ratings(db, products)

    async def get_homepage(self, customer_id: Optional[str] = None) -> Dict[str, List[RatedProduct]]:
        """Trending, top-rated and a personal (or featured) list, fetched concurrently"""
        size = self.homepage_size
        for_you = self.get_personalized(customer_id, size) if customer_id else self.get_featured(size)
        trending, top_rated, picks = await asyncio.gather(
            self.get_trending(size),
            self.get_top_rated(size),
            for_you,
        )
        return {"trending": trending, "top_rated": top_rated, "for_you": picks}

    # Strategies

    async def _personalized(self, db: AsyncSession, customer_id: str, limit: int) -> List[RatedProduct]:
        recent_orders = (
            select(Order.id)
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc())
            .limit(self.order_history)
        ).subquery()
        purchased = await db.execute(
            select(OrderItem.product_id).where(OrderItem.order_id.in_(select(recent_orders.c.id))).distinct()
        )
        purchased_ids = set(purchased.scalars().all())

        if not purchased_ids:
            return await self._featured(db, limit)

        affinity = await db.execute(
            select(Product.category_id, Product.brand_id).where(Product.id.in_(list(purchased_ids)))
        )
        rows = affinity.all()
        category_ids = {category_id for category_id, _ in rows}
        brand_ids = {brand_id for _, brand_id in rows}

        result = await db.execute(
            select(Product)
            .where(
                Product.is_active.is_(True),
                Product.id.notin_(list(purchased_ids)),
                or_(Product.category_id.in_(list(category_ids)), Product.brand_id.in_(list(brand_ids))),
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return await enrich_with_ratings(db, result.scalars().all())

    async def _similar(self, db: AsyncSession, product_id: int, limit: int) -> List[RatedProduct]:
        product = await db.get(Product, product_id)
        if not product:
            return []

        result = await db.execute(
            select(Product)
            .where(
                Product.is_active.is_(True),
                Product.id != product_id,
                or_(Product.category_id == product.category_id, Product.brand_id == product.brand_id),
            )
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return await enrich_with_ratings(db, result.scalars().all())

    async def _trending(self, db: AsyncSession, limit: int) -> List[RatedProduct]:
        cutoff = datetime.utcnow() - timedelta(days=self.trending_window_days)
        order_count = func.count(func.distinct(Order.id)).label("order_count")
        total_quantity = func.sum(OrderItem.quantity).label("total_quantity")

        result = await db.execute(
            select(OrderItem.product_id, order_count, total_quantity)
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.created_at >= cutoff, Order.status.notin_(EXCLUDED_TRENDING_STATUSES))
            .group_by(OrderItem.product_id)
            .order_by(desc("order_count"), desc("total_quantity"), OrderItem.product_id)
            .limit(limit)
        )
        ranked_ids = [row.product_id for row in result.all()]

        products = await self._resolve_ranked(db, ranked_ids)
        if not products:
            return await self._featured(db, limit)
        return await enrich_with_ratings(db, products)

    async def _top_rated(self, db: AsyncSession, limit: int) -> List[RatedProduct]:
        average = func.avg(Review.rating).label("average_rating")
        count = func.count(Review.id).label("review_count")

        result = await db.execute(
            select(Review.product_id, average, count)
            .where(Review.status == ReviewStatus.APPROVED)
            .group_by(Review.product_id)
            .having(func.count(Review.id) >= self.top_rated_min_reviews)
            .order_by(desc("average_rating"), desc("review_count"), Review.product_id)
            .limit(limit)
        )
        aggregates = {row.product_id: (float(row.average_rating), row.review_count) for row in result.all()}

        products = await self._resolve_ranked(db, list(aggregates))
        if not products:
            return await self._featured(db, limit)
        return [to_rated_product(product, *aggregates[product.id]) for product in products]

    async def _featured(self, db: AsyncSession, limit: int) -> List[RatedProduct]:
        result = await db.execute(
            select(Product)
            .where(Product.is_active.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .limit(limit)
        )
        return await enrich_with_ratings(db, result.scalars().all())

    async def _frequently_bought_together(self, db: AsyncSession, product_id: int, limit: int) -> List[RatedProduct]:
        orders_with_product = (
            select(OrderItem.order_id)
            .join(Order, OrderItem.order_id == Order.id)
            .where(OrderItem.product_id == product_id, Order.status == OrderStatus.DELIVERED)
        )
        # Counted per line item, not per order
        result = await db.execute(
            select(OrderItem.product_id)
            .where(OrderItem.order_id.in_(orders_with_product), OrderItem.product_id != product_id)
            .order_by(OrderItem.id)
        )

        co_occurrence = Counter(result.scalars().all())
        ranked_ids = [other_id for other_id, _ in co_occurrence.most_common()]

        products = (await self._resolve_ranked(db, ranked_ids))[:limit]
        if not products:
            return await self._similar(db, product_id, limit)
        return await enrich_with_ratings(db, products)

    async def _resolve_ranked(self, db: AsyncSession, ranked_ids: List[int]) -> List[Product]:
        """Active products for the ranked ids, in ranking order"""
        if not ranked_ids:
            return []
        result = await db.execute(select(Product).where(Product.id.in_(ranked_ids), Product.is_active.is_(True)))
        by_id = {product.id: product for product in result.scalars().all()}
        return [by_id[product_id] for product_id in ranked_ids if product_id in by_id]


# Global engine instance
recommendation_engine = RecommendationEngine(
    AsyncSessionLocal,
    fail_soft=settings.recommendation_fail_soft,
    trending_window_days=settings.trending_window_days,
    top_rated_min_reviews=settings.top_rated_min_reviews,
    order_history=settings.personalized_order_history,
    homepage_size=settings.homepage_list_size,
)
