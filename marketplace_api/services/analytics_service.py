"""
Revenue and profit reporting over paid orders.

Orders are bucketed by calendar period in Python after a single range
query, so the zero-filled series covers every unit between start and end.
"""
import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, Iterator, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace_api.core.exceptions import BadRequestError
from marketplace_api.database.models import Order, OrderStatus, PaymentStatus

logger = logging.getLogger(__name__)

PERIODS = ("daily", "weekly", "monthly", "yearly")

DEFAULT_WINDOWS = {
    "daily": timedelta(days=30),
    "weekly": timedelta(weeks=12),
    "monthly": timedelta(days=360),
    "yearly": timedelta(days=5 * 365),
}

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def parse_date_param(value: Optional[str], name: str, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO-8601 query value into a naive UTC datetime"""
    if value is None or value == "":
        return None
    raw = value.strip()
    try:
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise BadRequestError(f"Invalid {name} format")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    # A bare date as the upper bound covers that whole day
    if end_of_day and "T" not in raw and " " not in raw:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def period_key(moment: datetime, period: str) -> str:
    if period == "daily":
        return moment.strftime("%Y-%m-%d")
    if period == "weekly":
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    if period == "monthly":
        return f"{moment.year}-{moment.month:02d}"
    return str(moment.year)


def period_label(key: str, period: str) -> str:
    if period == "daily":
        year, month, day = key.split("-")
        return f"{day}/{month}/{year}"
    if period == "weekly":
        year, week = key.split("-W")
        return f"{year} Week {week}"
    if period == "monthly":
        year, month = key.split("-")
        return f"{MONTH_NAMES[int(month) - 1]} {year}"
    return key


def iter_period_keys(start: datetime, end: datetime, period: str) -> Iterator[str]:
    """Every period key from the unit containing start up to end, in order"""
    last = end.date()
    if period == "daily":
        cursor = start.date()
        step = timedelta(days=1)
    elif period == "weekly":
        cursor = start.date() - timedelta(days=start.weekday())
        step = timedelta(weeks=1)
    elif period == "monthly":
        cursor = date(start.year, start.month, 1)
        while cursor <= last:
            yield period_key(datetime.combine(cursor, time.min), period)
            cursor = date(cursor.year + cursor.month // 12, cursor.month % 12 + 1, 1)
        return
    else:
        for year in range(start.year, end.year + 1):
            yield str(year)
        return

    while cursor <= last:
        yield period_key(datetime.combine(cursor, time.min), period)
        cursor += step


class AnalyticsService:
    """Admin revenue analytics"""

    async def get_analytics(
        self,
        db: AsyncSession,
        period: str = "daily",
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> List[dict]:
        if period not in PERIODS:
            raise BadRequestError("Invalid period. Must be one of: daily, weekly, monthly, yearly")

        end = end_date or now or datetime.utcnow()
        start = start_date or end - DEFAULT_WINDOWS[period]
        if start > end:
            raise BadRequestError("startDate must be before endDate")

        result = await db.execute(
            select(Order.created_at, Order.total, Order.total_profit).where(
                Order.payment_status == PaymentStatus.PAID,
                Order.created_at >= start,
                Order.created_at <= end,
            )
        )

        buckets: Dict[str, dict] = {
            key: {"revenue": 0.0, "profit": 0.0, "order_count": 0} for key in iter_period_keys(start, end, period)
        }
        for created_at, total, profit in result.all():
            bucket = buckets.get(period_key(created_at, period))
            if bucket is None:
                continue
            bucket["revenue"] += total or 0
            bucket["profit"] += profit or 0
            bucket["order_count"] += 1

        analytics = []
        for key, bucket in buckets.items():
            count = bucket["order_count"]
            analytics.append(
                {
                    "period": period_label(key, period),
                    "periodKey": key,
                    "revenue": round(bucket["revenue"], 2),
                    "profit": round(bucket["profit"], 2),
                    "orderCount": count,
                    "averageOrderValue": round(bucket["revenue"] / count, 2) if count else 0,
                }
            )

        logger.info(f"Analytics computed: period={period}, buckets={len(analytics)}")
        return analytics

    async def get_order_report(
        self,
        db: AsyncSession,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> dict:
        conditions = []
        if start_date:
            conditions.append(Order.created_at >= start_date)
        if end_date:
            conditions.append(Order.created_at <= end_date)
        if status:
            conditions.append(Order.status == status)
        if payment_status:
            conditions.append(Order.payment_status == payment_status)

        total = (await db.execute(select(func.count(Order.id)).where(*conditions))).scalar() or 0
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.customer), selectinload(Order.items))
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset(skip)
            .limit(limit)
        )

        orders = []
        for order in result.scalars().all():
            customer = order.customer
            orders.append(
                {
                    "orderId": order.id,
                    "customerName": customer.name if customer else "N/A",
                    "customerEmail": customer.email if customer else "N/A",
                    "orderDate": order.created_at,
                    "status": order.status.value if order.status else None,
                    "paymentStatus": order.payment_status.value if order.payment_status else None,
                    "revenue": round(order.total or 0, 2),
                    "profit": round(order.total_profit or 0, 2),
                    "items": len(order.items),
                }
            )

        return {"orders": orders, "total": total}

    async def get_summary(
        self,
        db: AsyncSession,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> dict:
        range_conditions = []
        if start_date:
            range_conditions.append(Order.created_at >= start_date)
        if end_date:
            range_conditions.append(Order.created_at <= end_date)

        totals = await db.execute(
            select(
                func.coalesce(func.sum(Order.total), 0),
                func.coalesce(func.sum(Order.total_profit), 0),
                func.count(Order.id),
            ).where(Order.payment_status == PaymentStatus.PAID, *range_conditions)
        )
        revenue, profit, count = totals.one()

        # Same paid set as the totals, so the breakdown sums to totalOrders
        statuses = await db.execute(
            select(Order.status, func.count(Order.id))
            .where(Order.payment_status == PaymentStatus.PAID, *range_conditions)
            .group_by(Order.status)
        )
        breakdown = Counter()
        for status, status_count in statuses.all():
            breakdown[status.value if status else "UNKNOWN"] += status_count

        return {
            "totalRevenue": round(float(revenue), 2),
            "totalProfit": round(float(profit), 2),
            "totalOrders": count,
            "averageOrderValue": round(float(revenue) / count, 2) if count else 0,
            "statusBreakdown": dict(breakdown),
        }


# Global service instance
analytics_service = AnalyticsService()
