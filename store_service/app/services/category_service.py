"""Category service for business logic"""

import uuid
from typing import Any, List, Optional

from ..core.errors import Result
from ..core.settings import get_settings
from ..core.unit_of_work import UnitOfWork
from ..models.category import Category, CategoryErrors
from ..schemas.category import (
    CategoryCreate,
    CategoryHierarchyRebuildResponse,
    CategoryResponse,
    CategoryUpdate,
)
from ..utils.logging import setup_store_logging as setup_logging
from .cache import CacheService
from .category_hierarchy import CategoryHierarchyService

# Setup structured logging for the service
logger = setup_logging("store_service.category_service", log_level=get_settings().LOG_LEVEL)


class CategoryService:
    """Service class for category business logic"""

    def __init__(self, uow: UnitOfWork, cache: Optional[CacheService] = None):
        self.uow = uow
        self.cache = cache
        self.hierarchy = CategoryHierarchyService(uow)
        self.cache_ttl = get_settings().CACHE_TTL_DEFAULT

    # =====================================================
    # COMMANDS
    # =====================================================

    async def create_category(
        self, category_data: CategoryCreate, correlation_id: Optional[str] = None
    ) -> Result[CategoryResponse]:
        """Create a new category, optionally under an existing parent"""
        parent: Optional[Category] = None
        if category_data.parent_id is not None:
            parent = await self.uow.category_writer.get_by_id(category_data.parent_id)
            if parent is None:
                return Result.failure(CategoryErrors.not_found(category_data.parent_id))

        if await self.uow.category_reader.slug_exists(category_data.slug):
            return Result.failure(CategoryErrors.duplicate_slug(category_data.slug))

        result = Category.create(
            name=category_data.name,
            slug=category_data.slug,
            description=category_data.description,
            parent=parent,
            is_active=category_data.is_active,
        )
        if result.is_failure:
            return result

        category = await self.uow.category_writer.add(result.value)
        await self.uow.save_changes()

        logger.info(
            "Category created successfully",
            extra={
                "category_id": str(category.id),
                "category_slug": category.slug,
                "parent_id": str(category.parent_id) if category.parent_id else None,
                "level": category.level,
                "correlation_id": correlation_id,
            },
        )
        return Result.success(CategoryResponse.model_validate(category))

    async def update_category(
        self,
        category_id: uuid.UUID,
        category_data: CategoryUpdate,
        correlation_id: Optional[str] = None,
    ) -> Result[CategoryResponse]:
        """Rename a category; a slug change also rewrites the subtree paths"""
        category = await self.uow.category_writer.get_by_id(category_id)
        if category is None:
            return Result.failure(CategoryErrors.not_found(category_id))

        slug_changed = category_data.slug != category.slug
        if slug_changed and await self.uow.category_reader.slug_exists(
            category_data.slug, exclude_id=category_id
        ):
            return Result.failure(CategoryErrors.duplicate_slug(category_data.slug))

        old_path = category.path
        result = category.update(
            category_data.name, category_data.slug, category_data.description
        )
        if result.is_failure:
            return result

        rebased = await self.hierarchy.refresh_descendants(category, old_path)
        await self.uow.save_changes()

        logger.info(
            "Category updated",
            extra={
                "category_id": str(category_id),
                "category_slug": category.slug,
                "descendants_rebased": len(rebased),
                "correlation_id": correlation_id,
            },
        )
        return Result.success(CategoryResponse.model_validate(category))

    async def change_parent(
        self,
        category_id: uuid.UUID,
        new_parent_id: Optional[uuid.UUID],
        correlation_id: Optional[str] = None,
    ) -> Result[CategoryResponse]:
        """Move a category (and its subtree) under another parent or to the root"""
        if new_parent_id == category_id:
            return Result.failure(CategoryErrors.CircularReference)

        category = await self.uow.category_writer.get_by_id(category_id)
        if category is None:
            return Result.failure(CategoryErrors.not_found(category_id))

        new_parent: Optional[Category] = None
        if new_parent_id is not None:
            new_parent = await self.uow.category_writer.get_by_id(new_parent_id)
            if new_parent is None:
                return Result.failure(CategoryErrors.not_found(new_parent_id))

        result = await self.hierarchy.reparent(category, new_parent)
        if result.is_failure:
            logger.warning(
                "Category move rejected",
                extra={
                    "category_id": str(category_id),
                    "new_parent_id": str(new_parent_id) if new_parent_id else None,
                    "error_code": result.error.code,
                    "correlation_id": correlation_id,
                },
            )
            return result

        await self.uow.save_changes()
        return Result.success(CategoryResponse.model_validate(category))

    async def change_status(
        self,
        category_id: uuid.UUID,
        is_active: bool,
        correlation_id: Optional[str] = None,
    ) -> Result[CategoryResponse]:
        """Activate or deactivate one category; children keep their own status"""
        category = await self.uow.category_writer.get_by_id(category_id)
        if category is None:
            return Result.failure(CategoryErrors.not_found(category_id))

        result = category.change_status(is_active)
        if result.is_failure:
            return result

        await self.uow.save_changes()
        logger.info(
            "Category status changed",
            extra={
                "category_id": str(category_id),
                "is_active": is_active,
                "correlation_id": correlation_id,
            },
        )
        return Result.success(CategoryResponse.model_validate(category))

    async def rebuild_hierarchy(
        self, correlation_id: Optional[str] = None
    ) -> Result[CategoryHierarchyRebuildResponse]:
        counts = await self.hierarchy.rebuild_hierarchy()
        await self.uow.save_changes()
        logger.info(
            "Category hierarchy rebuild finished",
            extra={**counts, "correlation_id": correlation_id},
        )
        return Result.success(CategoryHierarchyRebuildResponse(**counts))

    # =====================================================
    # QUERIES
    # =====================================================

    async def get_category(self, category_id: uuid.UUID) -> Result[CategoryResponse]:
        """Get category by ID"""
        cache_key = f"category-{category_id}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return Result.success(CategoryResponse.model_validate(cached))

        category = await self.uow.category_reader.get_by_id(category_id)
        if category is None:
            return Result.failure(CategoryErrors.not_found(category_id))

        await self._cache_set(cache_key, category.model_dump(mode="json"))
        return Result.success(category)

    async def get_category_by_slug(self, slug: str) -> Result[CategoryResponse]:
        cache_key = f"categories-slug-{slug}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return Result.success(CategoryResponse.model_validate(cached))

        category = await self.uow.category_reader.get_by_slug(slug)
        if category is None:
            return Result.failure(CategoryErrors.slug_not_found(slug))

        await self._cache_set(cache_key, category.model_dump(mode="json"))
        return Result.success(category)

    async def get_root_categories(self) -> Result[List[CategoryResponse]]:
        cached = await self._cache_get("categories-root")
        if cached is not None:
            return Result.success([CategoryResponse.model_validate(c) for c in cached])

        categories = await self.uow.category_reader.get_root_categories()
        await self._cache_set(
            "categories-root", [c.model_dump(mode="json") for c in categories]
        )
        return Result.success(categories)

    async def get_child_categories(
        self, parent_id: uuid.UUID
    ) -> Result[List[CategoryResponse]]:
        cache_key = f"category-children-{parent_id}"
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return Result.success([CategoryResponse.model_validate(c) for c in cached])

        if await self.uow.category_reader.get_by_id(parent_id) is None:
            return Result.failure(CategoryErrors.not_found(parent_id))

        children = await self.uow.category_reader.get_child_categories(parent_id)
        await self._cache_set(cache_key, [c.model_dump(mode="json") for c in children])
        return Result.success(children)

    # =====================================================
    # CACHE HELPERS
    # =====================================================

    async def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as e:
            logger.warning(
                "Cache read failed, falling back to database",
                extra={"cache_key": key, "error": str(e)},
            )
            return None

    async def _cache_set(self, key: str, value: Any) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, self.cache_ttl)
        except Exception as e:
            logger.warning(
                "Cache write failed", extra={"cache_key": key, "error": str(e)}
            )
