"""
Unit tests for CategoryService, run against a SQLite database.
"""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import select

from store_service.app.core.unit_of_work import UnitOfWork
from store_service.app.models.outbox import OutboxMessage
from store_service.app.schemas.category import CategoryCreate, CategoryUpdate
from store_service.app.services.cache import CacheService, InMemoryCacheService
from store_service.app.services.category_service import CategoryService


class TestCategoryService:
    @pytest.fixture
    def service_factory(self, session_factory, cache):
        """Each call gets its own session, like one request each"""

        @asynccontextmanager
        async def scope():
            async with session_factory() as session:
                yield CategoryService(UnitOfWork(session), cache)

        return scope

    async def create(self, service_factory, name, slug, parent_id=None):
        async with service_factory() as service:
            result = await service.create_category(
                CategoryCreate(name=name, slug=slug, parent_id=parent_id)
            )
        assert result.is_success, result
        return result.value

    @pytest.mark.asyncio
    async def test_create_root_and_child(self, service_factory):
        electronics = await self.create(service_factory, "Electronics", "electronics")
        phones = await self.create(service_factory, "Phones", "phones", electronics.id)

        assert electronics.level == 0
        assert electronics.path == "/electronics"
        assert phones.level == 1
        assert phones.path == "/electronics/phones"
        assert phones.parent_id == electronics.id

    @pytest.mark.asyncio
    async def test_create_writes_outbox_message(self, service_factory, session_factory):
        category = await self.create(service_factory, "Electronics", "electronics")

        async with session_factory() as session:
            messages = (await session.execute(select(OutboxMessage))).scalars().all()

        assert [(m.type, m.aggregate_id) for m in messages] == [
            ("CategoryCreatedEvent", str(category.id))
        ]

    @pytest.mark.asyncio
    async def test_create_with_missing_parent(self, service_factory):
        async with service_factory() as service:
            result = await service.create_category(
                CategoryCreate(name="Phones", slug="phones", parent_id=uuid.uuid4())
            )

        assert result.error.code == "Category.NotFound"

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, service_factory):
        await self.create(service_factory, "Electronics", "electronics")

        async with service_factory() as service:
            result = await service.create_category(
                CategoryCreate(name="Other", slug="electronics")
            )

        assert result.error.code == "Category.DuplicateSlug"

    @pytest.mark.asyncio
    async def test_invalid_slug(self, service_factory):
        async with service_factory() as service:
            result = await service.create_category(
                CategoryCreate(name="Electronics", slug="Electronics!")
            )

        assert result.error.code == "Category.InvalidSlug"

    @pytest.mark.asyncio
    async def test_slug_change_rebases_descendants(self, service_factory):
        electronics = await self.create(service_factory, "Electronics", "electronics")
        phones = await self.create(service_factory, "Phones", "phones", electronics.id)

        async with service_factory() as service:
            result = await service.update_category(
                electronics.id, CategoryUpdate(name="Tech", slug="tech")
            )
        assert result.value.path == "/tech"

        async with service_factory() as service:
            child = (await service.get_category(phones.id)).value
        assert child.path == "/tech/phones"

    @pytest.mark.asyncio
    async def test_update_to_taken_slug(self, service_factory):
        await self.create(service_factory, "Electronics", "electronics")
        phones = await self.create(service_factory, "Phones", "phones")

        async with service_factory() as service:
            result = await service.update_category(
                phones.id, CategoryUpdate(name="Phones", slug="electronics")
            )

        assert result.error.code == "Category.DuplicateSlug"

    @pytest.mark.asyncio
    async def test_change_parent_scenario(self, service_factory):
        electronics = await self.create(service_factory, "Electronics", "electronics")
        phones = await self.create(service_factory, "Phones", "phones", electronics.id)

        async with service_factory() as service:
            moved = (await service.change_parent(phones.id, None)).value

        assert moved.parent_id is None
        assert moved.level == 0
        assert moved.path == "/phones"

    @pytest.mark.asyncio
    async def test_change_parent_to_self(self, service_factory):
        category = await self.create(service_factory, "Electronics", "electronics")

        async with service_factory() as service:
            result = await service.change_parent(category.id, category.id)

        assert result.error.code == "Category.CircularReference"

    @pytest.mark.asyncio
    async def test_change_parent_to_descendant(self, service_factory):
        a = await self.create(service_factory, "A", "a")
        b = await self.create(service_factory, "B", "b", a.id)

        async with service_factory() as service:
            result = await service.change_parent(a.id, b.id)

        assert result.error.code == "Category.CircularReference"
        async with service_factory() as service:
            unchanged = (await service.get_category(a.id)).value
        assert unchanged.level == 0
        assert unchanged.path == "/a"

    @pytest.mark.asyncio
    async def test_change_parent_to_missing_category(self, service_factory):
        category = await self.create(service_factory, "Electronics", "electronics")

        async with service_factory() as service:
            result = await service.change_parent(category.id, uuid.uuid4())

        assert result.error.code == "Category.NotFound"

    @pytest.mark.asyncio
    async def test_deactivate_parent_keeps_child_active(self, service_factory):
        parent = await self.create(service_factory, "Electronics", "electronics")
        child = await self.create(service_factory, "Phones", "phones", parent.id)

        async with service_factory() as service:
            result = await service.change_status(parent.id, False)
        assert result.value.is_active is False

        async with service_factory() as service:
            children = (await service.get_child_categories(parent.id)).value
        assert [c.id for c in children] == [child.id]
        assert children[0].is_active is True

    @pytest.mark.asyncio
    async def test_change_status_twice(self, service_factory):
        category = await self.create(service_factory, "Electronics", "electronics")

        for _ in range(2):
            async with service_factory() as service:
                result = await service.change_status(category.id, False)
            assert result.is_success
            assert result.value.is_active is False

    @pytest.mark.asyncio
    async def test_rebuild_hierarchy(self, service_factory):
        await self.create(service_factory, "Electronics", "electronics")

        async with service_factory() as service:
            result = await service.rebuild_hierarchy()

        assert result.value.categories_checked == 1
        assert result.value.categories_repaired == 0


class TestCategoryServiceCache:
    @pytest.mark.asyncio
    async def test_get_category_is_cached(self, uow):
        cache = InMemoryCacheService()
        service = CategoryService(uow, cache)
        created = (
            await service.create_category(CategoryCreate(name="Phones", slug="phones"))
        ).value

        first = await service.get_category(created.id)
        cached = await cache.get(f"category-{created.id}")

        assert first.value == created
        assert cached["slug"] == "phones"

    @pytest.mark.asyncio
    async def test_cached_value_is_served(self, uow):
        category_id = uuid.uuid4()
        cache = InMemoryCacheService()
        await cache.set(
            f"category-{category_id}",
            {
                "id": str(category_id),
                "name": "Cached",
                "slug": "cached",
                "description": None,
                "parent_id": None,
                "level": 0,
                "path": "/cached",
                "is_active": True,
                "created_at": "2024-01-01T00:00:00",
                "updated_at": "2024-01-01T00:00:00",
            },
        )

        result = await CategoryService(uow, cache).get_category(category_id)

        assert result.value.name == "Cached"

    @pytest.mark.asyncio
    async def test_cache_outage_falls_back_to_database(self, uow):
        cache = Mock(spec=CacheService)
        cache.get = AsyncMock(side_effect=ConnectionError("redis down"))
        cache.set = AsyncMock(side_effect=ConnectionError("redis down"))
        service = CategoryService(uow, cache)
        created = (
            await service.create_category(CategoryCreate(name="Phones", slug="phones"))
        ).value

        result = await service.get_category(created.id)

        assert result.value.id == created.id

    @pytest.mark.asyncio
    async def test_root_categories(self, uow):
        service = CategoryService(uow, InMemoryCacheService())
        for name, slug in [("Toys", "toys"), ("Books", "books")]:
            await service.create_category(CategoryCreate(name=name, slug=slug))

        roots = (await service.get_root_categories()).value

        assert [c.name for c in roots] == ["Books", "Toys"]

    @pytest.mark.asyncio
    async def test_children_of_missing_category(self, uow):
        result = await CategoryService(uow).get_child_categories(uuid.uuid4())

        assert result.error.code == "Category.NotFound"

    @pytest.mark.asyncio
    async def test_get_by_slug(self, uow):
        service = CategoryService(uow)
        await service.create_category(CategoryCreate(name="Phones", slug="phones"))

        assert (await service.get_category_by_slug("phones")).value.name == "Phones"
        assert (await service.get_category_by_slug("nope")).error.code == (
            "Category.NotFound"
        )
