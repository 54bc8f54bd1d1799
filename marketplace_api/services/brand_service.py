"""
Brand catalog service
"""
import logging
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.exceptions import BadRequestError, NotFoundError
from marketplace_api.database.models import Brand

logger = logging.getLogger(__name__)


class BrandService:
    """CRUD for brands; deletes are soft"""

    async def list_brands(self, db: AsyncSession, include_inactive: bool = False) -> List[Brand]:
        query = select(Brand).order_by(Brand.name)
        if not include_inactive:
            query = query.where(Brand.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_brand(self, db: AsyncSession, brand_id: int) -> Brand:
        brand = await db.get(Brand, brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    async def _ensure_unique_name(self, db: AsyncSession, name: str, exclude_id: int = None):
        query = select(Brand.id).where(func.lower(Brand.name) == name.lower())
        if exclude_id is not None:
            query = query.where(Brand.id != exclude_id)
        if (await db.execute(query)).first():
            raise BadRequestError("Brand with this name already exists")

    async def create_brand(self, db: AsyncSession, data: dict) -> Brand:
        await self._ensure_unique_name(db, data["name"])
        brand = Brand(**data)
        db.add(brand)
        await db.commit()
        await db.refresh(brand)
        logger.info(f"Created brand {brand.id}: {brand.name}")
        return brand

    async def update_brand(self, db: AsyncSession, brand_id: int, updates: dict) -> Brand:
        brand = await self.get_brand(db, brand_id)
        if updates.get("name"):
            await self._ensure_unique_name(db, updates["name"], exclude_id=brand_id)
        for field, value in updates.items():
            setattr(brand, field, value)
        await db.commit()
        await db.refresh(brand)
        return brand

    async def delete_brand(self, db: AsyncSession, brand_id: int) -> Brand:
        brand = await self.get_brand(db, brand_id)
        brand.is_active = False
        await db.commit()
        await db.refresh(brand)
        logger.info(f"Deactivated brand {brand_id}")
        return brand


# Global service instance
brand_service = BrandService()
