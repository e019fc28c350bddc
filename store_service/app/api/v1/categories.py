"""Category API endpoints"""

import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, status

from ...schemas.category import (
    CategoryCreate,
    CategoryParentUpdate,
    CategoryResponse,
    CategoryStatusUpdate,
    CategoryUpdate,
)
from ...services.category_service import CategoryService
from ..dependencies import AdminUserDep, CategoryServiceDep, CorrelationIdDep, unwrap

router = APIRouter(prefix="/categories")


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Create a new category (admin only)"""
    return unwrap(
        await service.create_category(category_data, correlation_id=correlation_id)
    )


@router.get("/root", response_model=List[CategoryResponse])
async def get_root_categories(service: CategoryService = CategoryServiceDep):
    """Categories without a parent"""
    return unwrap(await service.get_root_categories())


@router.get("/slug/{slug}", response_model=CategoryResponse)
async def get_category_by_slug(
    slug: str, service: CategoryService = CategoryServiceDep
):
    """Get category details by slug"""
    return unwrap(await service.get_category_by_slug(slug))


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: uuid.UUID, service: CategoryService = CategoryServiceDep
):
    """Get category details by ID"""
    return unwrap(await service.get_category(category_id))


@router.get("/{category_id}/children", response_model=List[CategoryResponse])
async def get_child_categories(
    category_id: uuid.UUID, service: CategoryService = CategoryServiceDep
):
    return unwrap(await service.get_child_categories(category_id))


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: uuid.UUID,
    category_data: CategoryUpdate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Update category name, slug and description (admin only)"""
    return unwrap(
        await service.update_category(
            category_id, category_data, correlation_id=correlation_id
        )
    )


@router.put("/{category_id}/parent", response_model=CategoryResponse)
async def change_category_parent(
    category_id: uuid.UUID,
    parent_data: CategoryParentUpdate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Move a category under another parent, or to the root with a null parent"""
    return unwrap(
        await service.change_parent(
            category_id, parent_data.parent_id, correlation_id=correlation_id
        )
    )


@router.put("/{category_id}/status", response_model=CategoryResponse)
async def change_category_status(
    category_id: uuid.UUID,
    status_data: CategoryStatusUpdate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Activate or deactivate a category; child categories are not affected"""
    return unwrap(
        await service.change_status(
            category_id, status_data.is_active, correlation_id=correlation_id
        )
    )
