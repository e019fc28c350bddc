"""
Pytest configuration and fixtures for Store Service tests.
"""

import os
import tempfile
from typing import Any, AsyncGenerator, Dict

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

# Set up test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["STORE_DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.gettempdir(), "store_service_test.db"
)
os.environ["CACHE_BACKEND"] = "memory"
os.environ["ENABLE_EVENT_PUBLISHING"] = "false"
os.environ["OUTBOX_DISPATCHER_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

# Import store service components
from store_service.app.api.dependencies import get_async_session
from store_service.app.core.database import StoreServiceDatabaseManager
from store_service.app.core.event_management import build_handler_registry
from store_service.app.core.unit_of_work import UnitOfWork
from store_service.app.events.outbox_dispatcher import OutboxDispatcher
from store_service.app.main import create_app
from store_service.app.services.cache import InMemoryCacheService


@pytest.fixture
async def test_database_manager(tmp_path) -> AsyncGenerator[StoreServiceDatabaseManager, None]:
    """Fresh SQLite database per test."""
    manager = StoreServiceDatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await manager.create_tables()

    yield manager

    await manager.close()


@pytest.fixture
def session_factory(test_database_manager):
    return test_database_manager.async_session_maker


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[Any, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def uow(db_session) -> UnitOfWork:
    return UnitOfWork(db_session)


@pytest.fixture
def cache() -> InMemoryCacheService:
    return InMemoryCacheService()


@pytest.fixture
def dispatcher(session_factory, cache) -> OutboxDispatcher:
    """Dispatcher wired to the cache invalidation handlers, driven manually."""
    return OutboxDispatcher(
        session_factory, build_handler_registry(cache), retry_base_delay=1.0
    )


@pytest.fixture
def test_app(session_factory, cache) -> FastAPI:
    """Application bound to the per-test database and cache."""
    app = create_app()
    app.state.cache = cache

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    return app


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"X-User-ID": "42", "X-User-Role": "admin"}


@pytest.fixture
def customer_headers() -> Dict[str, str]:
    return {"X-User-ID": "7", "X-User-Role": "customer"}
