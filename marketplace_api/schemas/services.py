"""
Pydantic schemas for customer service requests
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from marketplace_api.database.models import PaymentStatus, ServiceRequestStatus, ServiceType
from marketplace_api.schemas.common import Address, CamelModel


class BirdRecord(CamelModel):
    ring_id: str = Field(..., min_length=1, max_length=100)
    species: str = Field(..., min_length=1, max_length=200)
    collection_date_time: datetime
    notes: Optional[str] = None


class BirdDNARequestCreate(CamelModel):
    customer_name: str = Field(..., min_length=1, max_length=200)
    farm: str = Field(..., min_length=1, max_length=200)
    address: Address
    pickup_address: Optional[Address] = None
    birds: List[BirdRecord] = Field(..., min_length=1)
    extra_note: Optional[str] = None
    payment_id: Optional[str] = None


class ServiceRequestResponse(CamelModel):
    id: int
    customer_id: str
    service_type: ServiceType
    customer_name: str
    farm: str
    address: Address
    pickup_address: Address
    delivery_address: Address
    birds: List[BirdRecord]
    extra_note: Optional[str] = None
    status: ServiceRequestStatus
    pickup_request_id: Optional[str] = None
    payment_id: Optional[str] = None
    payment_status: PaymentStatus
    total_amount: float
    created_at: datetime
