"""
Pydantic schemas for brands, categories and products
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from marketplace_api.schemas.common import CamelModel


# Brands
class BrandCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None


class BrandUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: Optional[bool] = None


class BrandResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    is_active: bool
    created_at: datetime


# Categories
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    parent_category_id: Optional[int] = None


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image: Optional[str] = None
    parent_category_id: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    image: Optional[str] = None
    parent_category_id: Optional[int] = None
    is_active: bool
    created_at: datetime


class CategoryTreeNode(CategoryResponse):
    """Category with its nested children"""

    children: List["CategoryTreeNode"] = []


# Products
class ProductCreate(CamelModel):
    """Product input; derived prices are computed from mrp and percentages"""

    name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    category_id: int
    brand_id: int
    mrp: float = Field(..., gt=0)
    selling_percentage: float = Field(100, gt=0, le=100)
    purchase_percentage: float = Field(60, gt=0, le=100)
    is_prime: bool = False
    prime_vendor_id: Optional[str] = None
    images: List[str] = []

    @model_validator(mode="after")
    def check_prime_vendor(self):
        if self.is_prime and not self.prime_vendor_id:
            raise ValueError("primeVendorId is required for prime products")
        return self


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    mrp: Optional[float] = Field(None, gt=0)
    selling_percentage: Optional[float] = Field(None, gt=0, le=100)
    purchase_percentage: Optional[float] = Field(None, gt=0, le=100)
    is_prime: Optional[bool] = None
    prime_vendor_id: Optional[str] = None
    images: Optional[List[str]] = None
    is_active: Optional[bool] = None


class ProductResponse(CamelModel):
    id: int
    name: str
    description: Optional[str] = None
    category_id: int
    brand_id: int
    mrp: float
    selling_percentage: float
    selling_price: float
    discount: float
    purchase_percentage: float
    purchase_price: float
    is_prime: bool
    prime_vendor_id: Optional[str] = None
    images: List[str] = []
    is_active: bool
    created_at: datetime


class RatedProduct(ProductResponse):
    """Product view carrying its review aggregate"""

    average_rating: float = 0
    review_count: int = 0


class ProductListResponse(CamelModel):
    products: List[RatedProduct]
    total: int
    page: int
    pages: int
    limit: int
