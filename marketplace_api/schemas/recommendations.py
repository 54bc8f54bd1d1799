"""
Pydantic schemas for recommendation responses
"""
from typing import List

from marketplace_api.schemas.catalog import RatedProduct
from marketplace_api.schemas.common import CamelModel


class RecommendationListResponse(CamelModel):
    success: bool = True
    data: List[RatedProduct]


class HomepageRecommendations(CamelModel):
    trending: List[RatedProduct] = []
    top_rated: List[RatedProduct] = []
    for_you: List[RatedProduct] = []


class HomepageResponse(CamelModel):
    success: bool = True
    data: HomepageRecommendations
