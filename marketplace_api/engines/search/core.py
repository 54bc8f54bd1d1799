"""
Search/Filter Engine

Builds conjunctive predicates and sort orders over the active catalog and
rating-enriches each result page.
"""
import math
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.config import settings
from marketplace_api.database.models import Brand, Category, Product, Review, ReviewStatus
from marketplace_api.engines.recommendation.ratings import enrich_with_ratings
from marketplace_api.middleware.logging_middleware import get_logger
from marketplace_api.schemas.search import (
    BrandFacet,
    FilterOptions,
    PopularSearch,
    PriceRange,
    RatingBucket,
    SearchQuery,
    SearchResponse,
    Suggestion,
)

logger = get_logger(__name__)

SORT_ORDERS = {
    "relevance": (Product.created_at.desc(), Product.id.desc()),
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "price_asc": (Product.selling_price.asc(), Product.id.asc()),
    "price_desc": (Product.selling_price.desc(), Product.id.desc()),
    "discount": (Product.discount.desc(), Product.id.desc()),
    # rating is re-sorted after enrichment
    "rating": (Product.created_at.desc(), Product.id.desc()),
}

RATING_BUCKETS = 5
MIN_SUGGESTION_LENGTH = 2
LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """ILIKE pattern matching text literally anywhere in the column"""
    escaped = text.strip().replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", r"\%").replace("_", r"\_")
    return f"%{escaped}%"


def build_conditions(
    q: Optional[str] = None,
    category_id: Optional[int] = None,
    brand_ids: Optional[List[int]] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    is_prime: Optional[bool] = None,
) -> list:
    """Filter predicates shared by search and facets"""
    conditions = [Product.is_active.is_(True)]
    if q:
        pattern = contains_pattern(q)
        conditions.append(
            or_(
                Product.name.ilike(pattern, escape=LIKE_ESCAPE),
                Product.description.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if category_id is not None:
        conditions.append(Product.category_id == category_id)
    if brand_ids:
        conditions.append(Product.brand_id.in_(brand_ids))
    if min_price is not None:
        conditions.append(Product.selling_price >= min_price)
    if max_price is not None:
        conditions.append(Product.selling_price <= max_price)
    if is_prime is not None:
        conditions.append(Product.is_prime.is_(is_prime))
    return conditions


def rating_bucket(average: float) -> int:
    """Bucket index for an average rating; 5.0 belongs to the top bucket"""
    return min(max(int(math.floor(average)), 0), RATING_BUCKETS - 1)


def empty_histogram() -> List[RatingBucket]:
    return [RatingBucket(min=index, max=index + 1) for index in range(RATING_BUCKETS)]


class SearchEngine:
    """Catalog search, suggestions and facets"""

    def __init__(self, fail_soft: bool = True, scope_rating_facets: bool = True):
        self.fail_soft = fail_soft
        self.scope_rating_facets = scope_rating_facets

    def _handle_failure(self, operation: str, error: Exception):
        if not self.fail_soft:
            raise error
        logger.error(f"Search operation '{operation}' failed: {error}", exc_info=True)

    async def advanced_search(self, db: AsyncSession, query: SearchQuery) -> SearchResponse:
        """
        Filtered, sorted, paginated search.

        min_rating and the rating sort act on the enriched page only; when
        min_rating is set the total is the in-page count after filtering.
        """
        filters = query.model_dump(exclude_none=True, by_alias=True)
        try:
            conditions = build_conditions(
                query.q, query.category_id, query.brand_id, query.min_price, query.max_price, query.is_prime
            )
            total = (await db.execute(select(func.count(Product.id)).where(*conditions))).scalar() or 0

            result = await db.execute(
                select(Product)
                .where(*conditions)
                .order_by(*SORT_ORDERS[query.sort_by])
                .offset((query.page - 1) * query.limit)
                .limit(query.limit)
            )
            products = await enrich_with_ratings(db, result.scalars().all())

            if query.min_rating is not None:
                products = [product for product in products if product.average_rating >= query.min_rating]
                total = len(products)
            if query.sort_by == "rating":
                products.sort(key=lambda product: (product.average_rating, product.review_count), reverse=True)

            return SearchResponse(
                products=products,
                pagination={
                    "total": total,
                    "page": query.page,
                    "pages": math.ceil(total / query.limit),
                    "limit": query.limit,
                },
                filters=filters,
            )
        except Exception as e:
            self._handle_failure("advanced_search", e)
            return SearchResponse(
                products=[],
                pagination={"total": 0, "page": query.page, "pages": 0, "limit": query.limit},
                filters=filters,
            )

    async def get_suggestions(self, db: AsyncSession, q: Optional[str], limit: int = 5) -> List[Suggestion]:
        if not q or len(q.strip()) < MIN_SUGGESTION_LENGTH:
            return []
        try:
            result = await db.execute(
                select(Product.id, Product.name, Product.images)
                .where(
                    Product.is_active.is_(True),
                    Product.name.ilike(contains_pattern(q), escape=LIKE_ESCAPE),
                )
                .order_by(Product.name)
                .limit(limit)
            )
            return [
                Suggestion(id=product_id, name=name, image=images[0] if images else None)
                for product_id, name, images in result.all()
            ]
        except Exception as e:
            self._handle_failure("suggestions", e)
            return []

    async def get_filter_options(
        self, db: AsyncSession, category_id: Optional[int] = None, q: Optional[str] = None
    ) -> FilterOptions:
        """Brand, price and rating facets for the matched products"""
        try:
            conditions = build_conditions(q=q, category_id=category_id)

            brands = await db.execute(
                select(Brand.id, Brand.name, Brand.image)
                .join(Product, Product.brand_id == Brand.id)
                .where(*conditions)
                .distinct()
                .order_by(Brand.name)
            )

            prices = await db.execute(
                select(func.min(Product.selling_price), func.max(Product.selling_price)).where(*conditions)
            )
            min_price, max_price = prices.one()

            return FilterOptions(
                brands=[BrandFacet(id=brand_id, name=name, image=image) for brand_id, name, image in brands.all()],
                price_range=PriceRange(min=min_price or 0, max=max_price or 0),
                ratings=await self._rating_histogram(db, conditions),
            )
        except Exception as e:
            self._handle_failure("filter_options", e)
            return FilterOptions(ratings=empty_histogram())

    async def _rating_histogram(self, db: AsyncSession, conditions: list) -> List[RatingBucket]:
        review_filter = [Review.status == ReviewStatus.APPROVED]
        if self.scope_rating_facets:
            review_filter.append(Review.product_id.in_(select(Product.id).where(*conditions)))

        result = await db.execute(
            select(Review.product_id, func.avg(Review.rating)).where(*review_filter).group_by(Review.product_id)
        )

        histogram = empty_histogram()
        for _, average in result.all():
            histogram[rating_bucket(float(average))].count += 1
        return histogram

    async def get_popular_searches(self, db: AsyncSession, limit: int = 10) -> List[PopularSearch]:
        """Categories with the most active products"""
        try:
            product_count = func.count(Product.id).label("product_count")
            result = await db.execute(
                select(Category.name, product_count)
                .join(Product, Product.category_id == Category.id)
                .where(Product.is_active.is_(True), Category.is_active.is_(True))
                .group_by(Category.id, Category.name)
                .order_by(product_count.desc(), Category.name)
                .limit(limit)
            )
            return [PopularSearch(term=name, count=count) for name, count in result.all()]
        except Exception as e:
            self._handle_failure("popular_searches", e)
            return []


# Global engine instance
search_engine = SearchEngine(
    fail_soft=settings.search_fail_soft,
    scope_rating_facets=settings.scope_rating_facets,
)
