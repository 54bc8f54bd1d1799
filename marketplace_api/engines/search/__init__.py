"""
Search/Filter Engine
"""

from .core import SearchEngine, build_conditions, contains_pattern, rating_bucket, search_engine

__all__ = ["SearchEngine", "search_engine", "build_conditions", "contains_pattern", "rating_bucket"]
