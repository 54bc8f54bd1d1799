"""
Rating enrichment shared by recommendations and search
"""
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.database.models import Product, Review, ReviewStatus
from marketplace_api.schemas.catalog import RatedProduct


async def fetch_rating_aggregates(db: AsyncSession, product_ids: Iterable[int]) -> Dict[int, Tuple[float, int]]:
    """Average rating and count of approved reviews, keyed by product id"""
    product_ids = list(product_ids)
    if not product_ids:
        return {}

    result = await db.execute(
        select(Review.product_id, func.avg(Review.rating), func.count(Review.id))
        .where(Review.product_id.in_(product_ids), Review.status == ReviewStatus.APPROVED)
        .group_by(Review.product_id)
    )
    return {product_id: (float(average), count) for product_id, average, count in result.all()}


def to_rated_product(product: Product, average: float = 0, count: int = 0) -> RatedProduct:
    return RatedProduct.model_validate(product).model_copy(
        update={"average_rating": round(average, 1), "review_count": count}
    )


async def enrich_with_ratings(db: AsyncSession, products: Iterable[Product]) -> List[RatedProduct]:
    """
    Attach averageRating and reviewCount to each product.

    Returns new RatedProduct records in input order; products without
    approved reviews get 0 and 0. The ORM rows are not touched.
    """
    products = list(products)
    aggregates = await fetch_rating_aggregates(db, [product.id for product in products])
    return [to_rated_product(product, *aggregates.get(product.id, (0, 0))) for product in products]
