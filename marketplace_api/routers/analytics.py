"""
Admin analytics API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.auth import require_admin
from marketplace_api.core.database import get_db
from marketplace_api.database.models import OrderStatus, PaymentStatus, User
from marketplace_api.services.analytics_service import analytics_service, parse_date_param

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/")
async def get_analytics(
    period: str = Query("daily"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Revenue and profit per period over paid orders"""
    analytics = await analytics_service.get_analytics(
        db,
        period=period,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate", end_of_day=True),
    )
    return {"success": True, "data": {"period": period, "analytics": analytics}}


@router.get("/orders")
async def get_order_report(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    status: Optional[OrderStatus] = Query(None),
    payment_status: Optional[PaymentStatus] = Query(None, alias="paymentStatus"),
    limit: int = Query(100, ge=1, le=1000),
    skip: int = Query(0, ge=0),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Order-level report with customer details"""
    report = await analytics_service.get_order_report(
        db,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate", end_of_day=True),
        status=status,
        payment_status=payment_status,
        limit=limit,
        skip=skip,
    )
    return {"success": True, "data": report["orders"], "total": report["total"]}


@router.get("/summary")
async def get_summary(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    _: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    summary = await analytics_service.get_summary(
        db,
        start_date=parse_date_param(start_date, "startDate"),
        end_date=parse_date_param(end_date, "endDate", end_of_day=True),
    )
    return {"success": True, "data": summary}
