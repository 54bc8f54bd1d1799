"""
Pydantic schemas for catalog search
"""
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from marketplace_api.schemas.catalog import RatedProduct
from marketplace_api.schemas.common import CamelModel, Pagination

SortOption = Literal["relevance", "price_asc", "price_desc", "newest", "discount", "rating"]


class SearchQuery(CamelModel):
    """Filters and paging for advanced search"""

    q: Optional[str] = None
    category_id: Optional[int] = None
    brand_id: Optional[List[int]] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    is_prime: Optional[bool] = None
    min_rating: Optional[float] = Field(None, ge=0, le=5)
    sort_by: SortOption = "relevance"
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class SearchResponse(CamelModel):
    success: bool = True
    products: List[RatedProduct]
    pagination: Pagination
    filters: Dict[str, Any] = {}


class Suggestion(CamelModel):
    id: int
    name: str
    image: Optional[str] = None


class BrandFacet(CamelModel):
    id: int
    name: str
    image: Optional[str] = None


class PriceRange(CamelModel):
    min: float = 0
    max: float = 0


class RatingBucket(CamelModel):
    """Products whose average rating falls in [min, max); the top bucket includes 5"""

    min: int
    max: int
    count: int = 0


class FilterOptions(CamelModel):
    brands: List[BrandFacet] = []
    price_range: PriceRange = PriceRange()
    ratings: List[RatingBucket] = []


class PopularSearch(CamelModel):
    term: str
    count: int
