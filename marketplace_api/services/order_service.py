"""
Order placement and lifecycle service
"""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace_api.core.exceptions import BadRequestError, NotFoundError, PermissionDeniedError
from marketplace_api.database.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    Product,
    User,
    UserRole,
)

logger = logging.getLogger(__name__)


def price_line(product: Product, quantity: int, position: int) -> OrderItem:
    """Build an order line from the product's current prices"""
    subtotal = round(product.selling_price * quantity, 2)
    purchase_subtotal = round(product.purchase_price * quantity, 2)
    profit = round(subtotal - purchase_subtotal, 2)
    return OrderItem(
        product_id=product.id,
        position=position,
        quantity=quantity,
        selling_price=product.selling_price,
        purchase_price=product.purchase_price,
        subtotal=subtotal,
        purchase_subtotal=purchase_subtotal,
        profit=profit,
        profit_percentage=round(profit / subtotal * 100, 2) if subtotal else 0,
    )


class OrderService:
    """Creates and manages customer orders"""

    async def _load(self, db: AsyncSession, order_id: int) -> Order:
        result = await db.execute(
            select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def create_order(self, db: AsyncSession, customer: User, data: dict) -> Order:
        product_ids = [item["product_id"] for item in data["items"]]
        result = await db.execute(
            select(Product).where(Product.id.in_(product_ids), Product.is_active.is_(True))
        )
        products = {product.id: product for product in result.scalars().all()}

        items = []
        for position, item in enumerate(data["items"]):
            product = products.get(item["product_id"])
            if not product:
                raise BadRequestError(f"Product {item['product_id']} not found")
            items.append(price_line(product, item["quantity"], position))

        total = round(sum(item.subtotal for item in items), 2)
        total_purchase_price = round(sum(item.purchase_subtotal for item in items), 2)
        payment_id = data.get("payment_id")

        order = Order(
            customer_id=customer.id,
            items=items,
            total=total,
            total_purchase_price=total_purchase_price,
            total_profit=round(total - total_purchase_price, 2),
            payment_id=payment_id,
            payment_status=PaymentStatus.PAID if payment_id else PaymentStatus.PENDING,
            customer_address=data.get("customer_address") or customer.address,
            customer_pincode=data.get("customer_pincode"),
        )
        db.add(order)
        await db.commit()
        logger.info(f"Order {order.id} placed by {customer.id} ({len(items)} items, total {total})")
        return await self._load(db, order.id)

    async def list_customer_orders(self, db: AsyncSession, customer_id: str) -> List[Order]:
        result = await db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.customer_id == customer_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def get_order(self, db: AsyncSession, order_id: int, user: User) -> Order:
        order = await self._load(db, order_id)
        if user.role != UserRole.ADMIN and order.customer_id != user.id:
            raise PermissionDeniedError("Not authorized to access this order")
        return order

    async def update_status(
        self,
        db: AsyncSession,
        order_id: int,
        status: Optional[OrderStatus] = None,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Order:
        order = await self._load(db, order_id)
        if status is not None:
            order.status = status
        if payment_status is not None:
            order.payment_status = payment_status
        await db.commit()
        logger.info(f"Order {order_id} updated: status={order.status.value}, payment={order.payment_status.value}")
        return await self._load(db, order_id)

    async def delete_order(self, db: AsyncSession, order_id: int, user: User):
        order = await self.get_order(db, order_id, user)
        await db.delete(order)
        await db.commit()
        logger.info(f"Order {order_id} deleted by {user.id}")


# Global service instance
order_service = OrderService()
