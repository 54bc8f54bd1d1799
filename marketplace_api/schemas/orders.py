"""
Pydantic schemas for orders
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from marketplace_api.database.models import OrderStatus, PaymentStatus
from marketplace_api.schemas.common import Address, CamelModel


class OrderItemCreate(CamelModel):
    product_id: int
    quantity: int = Field(1, ge=1)


class OrderCreate(CamelModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)
    customer_address: Optional[Address] = None
    customer_pincode: Optional[str] = Field(None, max_length=10)
    payment_id: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def check_any(self):
        if self.status is None and self.payment_status is None:
            raise ValueError("status or paymentStatus is required")
        return self


class OrderItemResponse(CamelModel):
    product_id: int
    quantity: int
    selling_price: float
    purchase_price: float
    subtotal: float
    purchase_subtotal: float
    profit: float
    profit_percentage: float


class OrderResponse(CamelModel):
    id: int
    customer_id: str
    items: List[OrderItemResponse]
    total: float
    total_purchase_price: float
    total_profit: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    customer_address: Optional[Address] = None
    customer_pincode: Optional[str] = None
    created_at: datetime
