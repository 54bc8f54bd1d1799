"""
Product catalog service
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.exceptions import BadRequestError, NotFoundError
from marketplace_api.database.models import Brand, Category, Product, User, UserRole

logger = logging.getLogger(__name__)

PRICING_FIELDS = ("mrp", "selling_percentage", "purchase_percentage")


def compute_prices(mrp: float, selling_percentage: float, purchase_percentage: float) -> dict:
    """Derive selling price, discount and purchase price from the MRP"""
    selling_price = round(mrp * selling_percentage / 100, 2)
    discount = round((mrp - selling_price) / mrp * 100, 2) if mrp else 0
    return {
        "selling_price": selling_price,
        "discount": discount,
        "purchase_price": round(mrp * purchase_percentage / 100, 2),
    }


class ProductService:
    """CRUD for products; deletes are soft"""

    async def list_products(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 20,
        category_id: Optional[int] = None,
        brand_id: Optional[int] = None,
        include_inactive: bool = False,
    ) -> Tuple[List[Product], int]:
        conditions = []
        if not include_inactive:
            conditions.append(Product.is_active.is_(True))
        if category_id is not None:
            conditions.append(Product.category_id == category_id)
        if brand_id is not None:
            conditions.append(Product.brand_id == brand_id)

        total = (await db.execute(select(func.count(Product.id)).where(*conditions))).scalar() or 0
        query = (
            select(Product)
            .where(*conditions)
            .order_by(Product.created_at.desc(), Product.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total

    async def get_product(self, db: AsyncSession, product_id: int, include_inactive: bool = False) -> Product:
        product = await db.get(Product, product_id)
        if not product or (not include_inactive and not product.is_active):
            raise NotFoundError("Product not found")
        return product

    async def _check_references(self, db: AsyncSession, category_id: Optional[int], brand_id: Optional[int]):
        if category_id is not None and not await db.get(Category, category_id):
            raise BadRequestError("Category not found")
        if brand_id is not None and not await db.get(Brand, brand_id):
            raise BadRequestError("Brand not found")

    async def create_product(self, db: AsyncSession, data: dict, creator: User) -> Product:
        await self._check_references(db, data["category_id"], data["brand_id"])

        # Vendors listing prime products own them
        if creator.role == UserRole.VENDOR and data.get("is_prime") and not data.get("prime_vendor_id"):
            data["prime_vendor_id"] = creator.id

        data.update(compute_prices(data["mrp"], data["selling_percentage"], data["purchase_percentage"]))
        product = Product(**data)
        db.add(product)
        await db.commit()
        await db.refresh(product)
        logger.info(f"Created product {product.id}: {product.name}")
        return product

    async def update_product(self, db: AsyncSession, product_id: int, updates: dict) -> Product:
        product = await self.get_product(db, product_id, include_inactive=True)
        await self._check_references(db, updates.get("category_id"), updates.get("brand_id"))

        for field, value in updates.items():
            setattr(product, field, value)

        if any(field in updates for field in PRICING_FIELDS):
            for field, value in compute_prices(
                product.mrp, product.selling_percentage, product.purchase_percentage
            ).items():
                setattr(product, field, value)

        if product.is_prime and not product.prime_vendor_id:
            raise BadRequestError("primeVendorId is required for prime products")

        await db.commit()
        await db.refresh(product)
        return product

    async def delete_product(self, db: AsyncSession, product_id: int) -> Product:
        product = await self.get_product(db, product_id, include_inactive=True)
        product.is_active = False
        await db.commit()
        await db.refresh(product)
        logger.info(f"Deactivated product {product_id}")
        return product


# Global service instance
product_service = ProductService()
