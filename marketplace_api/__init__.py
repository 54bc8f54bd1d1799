"""
Marketplace API: catalog, orders, reviews, search, recommendations and
admin analytics over an async SQL store.
"""

__version__ = "1.0.0"
