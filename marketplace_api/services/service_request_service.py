"""
Customer service requests (bird DNA sexing pickups)
"""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.config import settings
from marketplace_api.core.exceptions import NotFoundError, PermissionDeniedError
from marketplace_api.database.models import PaymentStatus, ServiceRequest, ServiceType, User, UserRole

logger = logging.getLogger(__name__)


class ServiceRequestService:
    """Creates and reads service requests"""

    async def create_bird_dna_request(self, db: AsyncSession, customer: User, data: dict) -> ServiceRequest:
        birds = data["birds"]
        payment_id = data.get("payment_id")
        request = ServiceRequest(
            customer_id=customer.id,
            service_type=ServiceType.BIRD_DNA,
            customer_name=data["customer_name"],
            farm=data["farm"],
            address=data["address"],
            pickup_address=data.get("pickup_address") or data["address"],
            delivery_address=dict(settings.lab_address),
            birds=birds,
            extra_note=data.get("extra_note"),
            payment_id=payment_id,
            payment_status=PaymentStatus.PAID if payment_id else PaymentStatus.PENDING,
            total_amount=len(birds) * settings.bird_dna_price_per_bird,
        )
        db.add(request)
        await db.commit()
        await db.refresh(request)
        logger.info(f"Bird DNA request {request.id} created by {customer.id} for {len(birds)} birds")
        return request

    async def list_customer_requests(self, db: AsyncSession, customer_id: str) -> List[ServiceRequest]:
        result = await db.execute(
            select(ServiceRequest)
            .where(ServiceRequest.customer_id == customer_id)
            .order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc())
        )
        return list(result.scalars().all())

    async def get_request(self, db: AsyncSession, request_id: int, user: User) -> ServiceRequest:
        request = await db.get(ServiceRequest, request_id)
        if not request:
            raise NotFoundError("Service request not found")
        if user.role != UserRole.ADMIN and request.customer_id != user.id:
            raise PermissionDeniedError("Not authorized to view this service request")
        return request


# Global service instance
service_request_service = ServiceRequestService()
