"""
FastAPI dependency injection for Store Service

Provides dependency injection for the unit of work, services, the cache,
caller identity and correlation ids.
"""

from typing import AsyncGenerator, Optional, TypeVar

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db_session
from ..core.errors import Result, StoreException
from ..core.unit_of_work import UnitOfWork
from ..middleware.auth.auth_middleware import admin_user, authenticated_user
from ..services.cache import CacheService
from ..services.cache.invalidation import CacheInvalidationService
from ..services.cart_service import CartService
from ..services.category_service import CategoryService
from ..services.order_service import OrderService
from ..services.payment_service import PaymentService

T = TypeVar("T")

# =====================================================
# DATABASE DEPENDENCIES
# =====================================================


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide async database session"""
    async for session in get_db_session():
        yield session


async def get_unit_of_work(
    session: AsyncSession = Depends(get_async_session),
) -> AsyncGenerator[UnitOfWork, None]:
    """Provide a unit of work that rolls back if the request fails"""
    async with UnitOfWork(session) as uow:
        yield uow


# =====================================================
# CACHE DEPENDENCIES
# =====================================================


def get_cache_service(request: Request) -> CacheService:
    """Provide the application-wide cache backend"""
    return request.app.state.cache


# =====================================================
# SERVICE DEPENDENCIES
# =====================================================


def get_category_service(
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: CacheService = Depends(get_cache_service),
) -> CategoryService:
    """Provide CategoryService instance with unit of work and cache"""
    return CategoryService(uow, cache)


def get_cart_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> CartService:
    return CartService(uow)


def get_order_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> OrderService:
    return OrderService(uow)


def get_payment_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> PaymentService:
    return PaymentService(uow)


def get_cache_invalidation_service(
    cache: CacheService = Depends(get_cache_service),
) -> CacheInvalidationService:
    return CacheInvalidationService(cache)


# =====================================================
# REQUEST CONTEXT DEPENDENCIES
# =====================================================


def get_correlation_id(request: Request) -> Optional[str]:
    """Correlation ID established by the request logging middleware"""
    return getattr(request.state, "correlation_id", None) or request.headers.get(
        "X-Correlation-ID"
    )


def unwrap(result: Result[T]) -> T:
    """Return the value of a successful result or raise its error"""
    if result.is_failure:
        raise StoreException.from_error(result.error)  # type: ignore[arg-type]
    return result.value


# =====================================================
# COMMON DEPENDENCY ALIASES
# =====================================================

CorrelationIdDep = Depends(get_correlation_id)
UnitOfWorkDep = Depends(get_unit_of_work)
AuthenticatedUserDep = Depends(authenticated_user)
AdminUserDep = Depends(admin_user)

CategoryServiceDep = Depends(get_category_service)
CartServiceDep = Depends(get_cart_service)
OrderServiceDep = Depends(get_order_service)
PaymentServiceDep = Depends(get_payment_service)
CacheInvalidationServiceDep = Depends(get_cache_invalidation_service)
