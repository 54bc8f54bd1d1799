"""
Order API routes
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import get_current_user, require_admin, require_customer
from marketplace_api.core.database import get_db
from marketplace_api.database.models import User
from marketplace_api.schemas.common import MessageResponse
from marketplace_api.schemas.orders import OrderCreate, OrderResponse, OrderStatusUpdate
from marketplace_api.services.order_service import order_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/", response_model=OrderResponse, status_code=201)
async def create_order(
    payload: OrderCreate,
    current_user: User = Depends(require_customer),
    db: AsyncSession = Depends(get_db),
):
    """Place an order priced from current product prices"""
    return await order_service.create_order(db, current_user, payload.model_dump(mode="json"))


@router.get("/my", response_model=List[OrderResponse])
async def get_my_orders(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await order_service.list_customer_orders(db, current_user.id)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.get_order(db, order_id, current_user)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.update_status(db, order_id, payload.status, payload.payment_status)


@router.delete("/{order_id}", response_model=MessageResponse)
async def delete_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await order_service.delete_order(db, order_id, current_user)
    return MessageResponse(message="Order deleted successfully")
