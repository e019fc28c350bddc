"""
API tests for the operator endpoints and the health check.
"""

import uuid

import pytest
from sqlalchemy import select, update

from store_service.app.events.domain_events import CategoryCreatedEvent
from store_service.app.models.category import Category
from store_service.app.models.outbox import OutboxMessage

ADMIN = "/api/v1/admin"


@pytest.fixture
async def dead_message(session_factory):
    message = OutboxMessage.create(CategoryCreatedEvent(category_id=uuid.uuid4()))
    message.retry_count = 5
    message.mark_as_dead("handler exploded")
    async with session_factory() as session:
        session.add(message)
        await session.commit()
        await session.refresh(message)
    return message


class TestOutboxAdminApi:
    @pytest.mark.asyncio
    async def test_list_failed_messages(self, client, admin_headers, dead_message):
        response = await client.get(f"{ADMIN}/outbox/failed", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert [m["id"] for m in body] == [dead_message.id]
        assert body[0]["status"] == "failed"
        assert body[0]["error"] == "handler exploded"
        assert body[0]["type"] == "CategoryCreatedEvent"

    @pytest.mark.asyncio
    async def test_retry_failed_message(
        self, client, admin_headers, dead_message, session_factory
    ):
        response = await client.post(
            f"{ADMIN}/outbox/{dead_message.id}/retry", headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["retry_count"] == 0
        assert body["error"] is None

        async with session_factory() as session:
            stored = await session.get(OutboxMessage, dead_message.id)
            assert stored.status == "pending"

        again = await client.post(
            f"{ADMIN}/outbox/{dead_message.id}/retry", headers=admin_headers
        )
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "Outbox.NotFailed"

    @pytest.mark.asyncio
    async def test_retry_unknown_message(self, client, admin_headers):
        response = await client.post(f"{ADMIN}/outbox/9999/retry", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "Outbox.NotFound"

    @pytest.mark.asyncio
    async def test_requires_admin(self, client, customer_headers):
        response = await client.get(f"{ADMIN}/outbox/failed", headers=customer_headers)

        assert response.status_code == 403


class TestHierarchyAdminApi:
    @pytest.mark.asyncio
    async def test_rebuild_repairs_corrupted_paths(
        self, client, admin_headers, session_factory
    ):
        parent = (
            await client.post(
                "/api/v1/categories",
                json={"name": "Electronics", "slug": "electronics"},
                headers=admin_headers,
            )
        ).json()
        child = (
            await client.post(
                "/api/v1/categories",
                json={"name": "Phones", "slug": "phones", "parent_id": parent["id"]},
                headers=admin_headers,
            )
        ).json()

        async with session_factory() as session:
            await session.execute(
                update(Category)
                .where(Category.id == uuid.UUID(child["id"]))
                .values(level=7, path="/broken")
            )
            await session.commit()

        response = await client.post(
            f"{ADMIN}/categories/rebuild-hierarchy", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json() == {"categories_checked": 2, "categories_repaired": 1}
        async with session_factory() as session:
            repaired = (
                await session.execute(
                    select(Category).where(Category.id == uuid.UUID(child["id"]))
                )
            ).scalar_one()
            assert repaired.level == 1
            assert repaired.path == "/electronics/phones"


class TestCacheAdminApi:
    @pytest.mark.asyncio
    async def test_clear_cache(self, client, admin_headers, cache):
        await cache.set("category-1", {"id": "1"})

        response = await client.delete(f"{ADMIN}/cache", headers=admin_headers)

        assert response.status_code == 204
        assert await cache.get("category-1") is None


class TestHealthApi:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"] == "healthy"
        assert body["checks"]["outbox_dispatcher"] == "stopped"

    @pytest.mark.asyncio
    async def test_correlation_id_is_generated(self, client):
        response = await client.get("/health")

        assert response.headers["X-Correlation-ID"]
