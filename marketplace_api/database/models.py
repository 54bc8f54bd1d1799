"""
Database models for the marketplace
"""
import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    VENDOR = "vendor"
    CUSTOMER = "customer"


class VendorType(str, enum.Enum):
    PRIME = "PRIME"
    NORMAL = "NORMAL"
    MY_SHOP = "MY_SHOP"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    PACKED = "PACKED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ServiceType(str, enum.Enum):
    BIRD_DNA = "bird_dna"


class ServiceRequestStatus(str, enum.Enum):
    PENDING = "pending"
    PICKUP_SCHEDULED = "pickup_scheduled"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    COMPLETED = "completed"


def _enum(enum_cls):
    """Store enum values (not member names) in the column"""
    return Enum(enum_cls, values_callable=lambda members: [m.value for m in members], native_enum=False)


class User(Base):
    """Customers, vendors and administrators"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(_enum(UserRole), default=UserRole.CUSTOMER, nullable=False, index=True)
    vendor_type = Column(_enum(VendorType), nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    address = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"


class Brand(Base):
    """Product brands"""

    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    products = relationship("Product", back_populates="brand")

    def __repr__(self):
        return f"<Brand(id={self.id}, name='{self.name}', is_active={self.is_active})>"


class Category(Base):
    """Product categories with hierarchical structure"""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    # Cycles are not rejected here; tree building guards against them
    parent_category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}', parent={self.parent_category_id})>"


class Product(Base):
    """Catalog product"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(500), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), nullable=False, index=True)

    # Pricing
    mrp = Column(Float, nullable=False, default=0)
    selling_percentage = Column(Float, nullable=False, default=100)
    selling_price = Column(Float, nullable=False, default=0, index=True)
    discount = Column(Float, nullable=False, default=0)
    purchase_percentage = Column(Float, nullable=False, default=60)
    purchase_price = Column(Float, nullable=False, default=0)

    is_prime = Column(Boolean, default=False, nullable=False, index=True)
    prime_vendor_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    images = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="products")
    brand = relationship("Brand", back_populates="products")

    __table_args__ = (
        Index("idx_product_active_created", "is_active", "created_at"),
        Index("idx_product_price_category", "selling_price", "category_id"),
        Index("idx_product_brand_category", "brand_id", "category_id"),
        CheckConstraint("discount >= 0 AND discount <= 100", name="ck_product_discount_range"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name[:50]}', price={self.selling_price})>"


class Order(Base):
    """Customer order; analytics and recommendations only read it"""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    total = Column(Float, nullable=False, default=0)
    total_purchase_price = Column(Float, nullable=False, default=0)
    total_profit = Column(Float, nullable=False, default=0)
    status = Column(_enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)
    payment_status = Column(_enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False, index=True)
    payment_id = Column(String(100), nullable=True)
    customer_address = Column(JSON, nullable=True)
    customer_pincode = Column(String(10), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    customer = relationship("User")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    __table_args__ = (Index("idx_order_payment_created", "payment_status", "created_at"),)

    def __repr__(self):
        return f"<Order(id={self.id}, status={self.status}, total={self.total})>"


class OrderItem(Base):
    """Line item of an order"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False, default=1)
    selling_price = Column(Float, nullable=False, default=0)
    purchase_price = Column(Float, nullable=False, default=0)
    subtotal = Column(Float, nullable=False, default=0)
    purchase_subtotal = Column(Float, nullable=False, default=0)
    profit = Column(Float, nullable=False, default=0)
    profit_percentage = Column(Float, nullable=False, default=0)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),)


class Review(Base):
    """Verified-purchase product review"""

    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False, index=True)
    title = Column(String(200), nullable=True)
    comment = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    is_verified_purchase = Column(Boolean, default=True, nullable=False)
    helpful_count = Column(Integer, default=0, nullable=False)
    status = Column(_enum(ReviewStatus), default=ReviewStatus.APPROVED, nullable=False, index=True)
    moderated_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    moderated_at = Column(DateTime, nullable=True)

    # Vendor response
    vendor_response_comment = Column(Text, nullable=True)
    vendor_response_at = Column(DateTime, nullable=True)
    vendor_response_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    product = relationship("Product")
    customer = relationship("User", foreign_keys=[customer_id])

    __table_args__ = (
        # One review per product per order per customer
        UniqueConstraint("product_id", "order_id", "customer_id", name="uq_review_product_order_customer"),
        Index("idx_review_product_status_created", "product_id", "status", "created_at"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        CheckConstraint("helpful_count >= 0", name="ck_review_helpful_count"),
    )

    def __repr__(self):
        return f"<Review(id={self.id}, product_id={self.product_id}, rating={self.rating})>"


class ServiceRequest(Base):
    """Pickup-and-lab service request (bird DNA sexing)"""

    __tablename__ = "service_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_type = Column(_enum(ServiceType), default=ServiceType.BIRD_DNA, nullable=False)
    customer_name = Column(String(200), nullable=False)
    farm = Column(String(200), nullable=False)
    address = Column(JSON, nullable=False)
    birds = Column(JSON, nullable=False)
    pickup_address = Column(JSON, nullable=False)
    delivery_address = Column(JSON, nullable=False)
    extra_note = Column(Text, nullable=True)
    status = Column(
        _enum(ServiceRequestStatus), default=ServiceRequestStatus.PENDING, nullable=False, index=True
    )
    pickup_request_id = Column(String(100), nullable=True)
    payment_id = Column(String(100), nullable=True)
    payment_status = Column(_enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    total_amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    customer = relationship("User")

    def __repr__(self):
        return f"<ServiceRequest(id={self.id}, type={self.service_type}, status={self.status})>"
