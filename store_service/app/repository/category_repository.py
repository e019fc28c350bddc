"""Category repositories: read side returns DTOs, write side tracked aggregates"""

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.category import Category
from ..schemas.category import CategoryResponse
from .base import AggregateRepository


class CategoryReadRepository:
    """Read-only category queries"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, category_id: uuid.UUID) -> Optional[CategoryResponse]:
        """Get category by ID"""
        category = await self.db.get(Category, category_id)
        return CategoryResponse.model_validate(category) if category else None

    async def get_by_slug(self, slug: str) -> Optional[CategoryResponse]:
        query = select(Category).where(Category.slug == slug)
        result = await self.db.execute(query)
        category = result.scalar_one_or_none()
        return CategoryResponse.model_validate(category) if category else None

    async def get_root_categories(self) -> List[CategoryResponse]:
        query = (
            select(Category).where(Category.parent_id.is_(None)).order_by(Category.name)
        )
        result = await self.db.execute(query)
        return [CategoryResponse.model_validate(c) for c in result.scalars().all()]

    async def get_child_categories(
        self, parent_id: uuid.UUID
    ) -> List[CategoryResponse]:
        query = (
            select(Category)
            .where(Category.parent_id == parent_id)
            .order_by(Category.name)
        )
        result = await self.db.execute(query)
        return [CategoryResponse.model_validate(c) for c in result.scalars().all()]

    async def get_parent_id(self, category_id: uuid.UUID) -> Optional[uuid.UUID]:
        query = select(Category.parent_id).where(Category.id == category_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def slug_exists(
        self, slug: str, exclude_id: Optional[uuid.UUID] = None
    ) -> bool:
        query = select(func.count()).select_from(Category).where(Category.slug == slug)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        result = await self.db.execute(query)
        return result.scalar_one() > 0


class CategoryWriteRepository(AggregateRepository[Category]):
    """Loads and stages Category aggregates for a unit of work"""

    model = Category

    async def get_descendants(self, category: Category) -> Sequence[Category]:
        """All categories below ``category`` ordered top-down by level"""
        return await self.get_descendants_by_path(category.path)

    async def get_descendants_by_path(self, path: str) -> Sequence[Category]:
        query = (
            select(Category)
            .where(Category.path.like(f"{path}/%"))
            .order_by(Category.level, Category.path)
        )
        result = await self.db.execute(query)
        return self._track_all(result.scalars().all())

    async def get_all(self) -> Sequence[Category]:
        result = await self.db.execute(select(Category).order_by(Category.level))
        return self._track_all(result.scalars().all())
