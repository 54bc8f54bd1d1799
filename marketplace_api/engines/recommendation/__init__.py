"""
Recommendation Engine

Product recommendations from order history and review aggregates.
"""

from .core import RecommendationEngine, recommendation_engine
from .ratings import enrich_with_ratings, fetch_rating_aggregates

__all__ = [
    "RecommendationEngine",
    "recommendation_engine",
    "enrich_with_ratings",
    "fetch_rating_aggregates",
]
