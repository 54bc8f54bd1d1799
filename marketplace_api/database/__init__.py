"""
Database module for the marketplace
"""
from .models import (
    Base,
    Brand,
    Category,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    Review,
    ReviewStatus,
    ServiceRequest,
    ServiceRequestStatus,
    ServiceType,
    User,
    UserRole,
    VendorType,
)

__all__ = [
    "Base",
    "Brand",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "Review",
    "ReviewStatus",
    "ServiceRequest",
    "ServiceRequestStatus",
    "ServiceType",
    "User",
    "UserRole",
    "VendorType",
]
