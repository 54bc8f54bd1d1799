"""
FastAPI main application for the marketplace
"""
import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from marketplace_api.core.config import settings
from marketplace_api.core.database import create_tables
from marketplace_api.core.exceptions import register_exception_handlers
from marketplace_api.core.logging import setup_logging
from marketplace_api.middleware import RequestLoggingMiddleware
from marketplace_api.routers import (
    analytics,
    auth,
    brands,
    categories,
    orders,
    products,
    recommendations,
    reviews,
    search,
    services,
)

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")
    sanitized = re.sub(r"://[^:]*:[^@]*@", "://***:***@", settings.database_url)
    logger.info(f"Database: {sanitized}")

    if settings.auto_create_tables:
        await create_tables()
        logger.info("Database tables created")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="E-commerce marketplace API",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

for module in (auth, brands, categories, products, orders, reviews, search, recommendations, analytics, services):
    app.include_router(module.router, prefix="/api")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.version,
        "environment": settings.environment,
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "docs": "/docs" if not settings.is_production else None,
        "endpoints": {
            "auth": "/api/auth",
            "brands": "/api/brands",
            "categories": "/api/categories",
            "products": "/api/products",
            "orders": "/api/orders",
            "reviews": "/api/reviews",
            "search": "/api/search",
            "recommendations": "/api/recommendations",
            "analytics": "/api/analytics",
            "services": "/api/services",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("marketplace_api.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
