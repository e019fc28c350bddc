"""Operator endpoints: hierarchy repair, cache and outbox maintenance"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, status

from ...core.unit_of_work import UnitOfWork
from ...schemas.category import CategoryHierarchyRebuildResponse
from ...schemas.outbox import OutboxMessageResponse
from ...services.cache.invalidation import CacheInvalidationService
from ...services.category_service import CategoryService
from ..dependencies import (
    AdminUserDep,
    CacheInvalidationServiceDep,
    CategoryServiceDep,
    CorrelationIdDep,
    UnitOfWorkDep,
    unwrap,
)

router = APIRouter(prefix="/admin")


@router.post(
    "/categories/rebuild-hierarchy", response_model=CategoryHierarchyRebuildResponse
)
async def rebuild_category_hierarchy(
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CategoryService = CategoryServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Recompute level and path of every category from its parent links"""
    return unwrap(await service.rebuild_hierarchy(correlation_id=correlation_id))


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_all_cache(
    service: CacheInvalidationService = CacheInvalidationServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
) -> None:
    await service.clear_all_cache()


@router.get("/outbox/failed", response_model=List[OutboxMessageResponse])
async def list_failed_outbox_messages(
    limit: int = Query(100, ge=1, le=1000),
    uow: UnitOfWork = UnitOfWorkDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Messages that exhausted their retries"""
    return await uow.outbox.get_failed_messages(limit)


@router.post("/outbox/{message_id}/retry", response_model=OutboxMessageResponse)
async def retry_outbox_message(
    message_id: int,
    uow: UnitOfWork = UnitOfWorkDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Requeue a failed message with its retry count reset"""
    message = unwrap(await uow.outbox.requeue(message_id))
    await uow.save_changes()
    return message
