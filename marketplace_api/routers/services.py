"""
Customer service request API routes
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import get_current_user
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.services import BirdDNARequestCreate, ServiceRequestResponse
from marketplace_api.services.service_request_service import service_request_service

router = APIRouter(prefix="/services", tags=["services"])


@router.post("/bird-dna", response_model=ServiceRequestResponse, status_code=201)
async def create_bird_dna_request(
    payload: BirdDNARequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Book a bird DNA sexing pickup; priced per bird"""
    return await service_request_service.create_bird_dna_request(db, current_user, payload.model_dump(mode="json"))


@router.get("/my", response_model=List[ServiceRequestResponse])
async def get_my_requests(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await service_request_service.list_customer_requests(db, current_user.id)


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service_request_service.get_request(db, request_id, current_user)
