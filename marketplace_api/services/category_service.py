"""
Category service and hierarchical tree building
"""
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace_api.core.exceptions import BadRequestError, NotFoundError
from marketplace_api.database.models import Category
from marketplace_api.schemas.catalog import CategoryTreeNode

logger = logging.getLogger(__name__)


def build_category_tree(categories: Iterable[Category]) -> List[CategoryTreeNode]:
    """
    Build a forest of CategoryTreeNode from a flat list.

    Nodes whose parent is missing from the input are roots. A parent link
    that would close a cycle is dropped and the node becomes a root, so the
    result is always finite. Sibling order follows input order.
    """
    categories = list(categories)
    category_map: Dict[int, CategoryTreeNode] = {}

    # First pass: create all nodes
    for category in categories:
        category_map[category.id] = CategoryTreeNode.model_validate(category)

    # Accepted parent links form a forest; walk them to detect cycles
    accepted_parent: Dict[int, int] = {}
    root_categories: List[CategoryTreeNode] = []

    # Second pass: attach children
    for category in categories:
        node = category_map[category.id]
        parent_id = category.parent_category_id

        if parent_id is None or parent_id not in category_map:
            root_categories.append(node)
            continue

        if _is_ancestor(category.id, parent_id, accepted_parent):
            logger.warning(f"Category cycle detected at {category.id} -> {parent_id}; placing at root")
            root_categories.append(node)
            continue

        accepted_parent[category.id] = parent_id
        category_map[parent_id].children.append(node)

    return root_categories


def _is_ancestor(candidate: int, start: int, parents: Dict[int, int]) -> bool:
    current: Optional[int] = start
    while current is not None:
        if current == candidate:
            return True
        current = parents.get(current)
    return False


class CategoryService:
    """CRUD for categories; deletes are soft"""

    async def list_categories(self, db: AsyncSession, include_inactive: bool = False) -> List[Category]:
        query = select(Category).order_by(Category.name)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_tree(self, db: AsyncSession, include_inactive: bool = False) -> List[CategoryTreeNode]:
        return build_category_tree(await self.list_categories(db, include_inactive))

    async def get_category(self, db: AsyncSession, category_id: int) -> Category:
        category = await db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category not found")
        return category

    async def _check_parent(self, db: AsyncSession, category_id: Optional[int], parent_id: Optional[int]):
        if parent_id is None:
            return
        if parent_id == category_id:
            raise BadRequestError("Category cannot be its own parent")
        if not await db.get(Category, parent_id):
            raise BadRequestError("Parent category not found")

    async def create_category(self, db: AsyncSession, data: dict) -> Category:
        await self._check_parent(db, None, data.get("parent_category_id"))
        category = Category(**data)
        db.add(category)
        await db.commit()
        await db.refresh(category)
        logger.info(f"Created category {category.id}: {category.name}")
        return category

    async def update_category(self, db: AsyncSession, category_id: int, updates: dict) -> Category:
        category = await self.get_category(db, category_id)
        if "parent_category_id" in updates:
            await self._check_parent(db, category_id, updates["parent_category_id"])
        for field, value in updates.items():
            setattr(category, field, value)
        await db.commit()
        await db.refresh(category)
        return category

    async def delete_category(self, db: AsyncSession, category_id: int) -> Category:
        category = await self.get_category(db, category_id)
        category.is_active = False
        await db.commit()
        await db.refresh(category)
        logger.info(f"Deactivated category {category_id}")
        return category


# Global service instance
category_service = CategoryService()
