"""
Unit tests for the cache backends.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from store_service.app.core.settings import StoreSettings
from store_service.app.services.cache import (
    InMemoryCacheService,
    RedisCacheService,
    create_cache_service,
)


class TestInMemoryCacheService:
    @pytest.fixture
    def cache(self):
        return InMemoryCacheService(max_size=3, default_ttl=60)

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache):
        await cache.set("category-1", {"name": "Electronics"})

        assert await cache.get("category-1") == {"name": "Electronics"}
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_dropped(self, cache):
        with patch("store_service.app.services.cache.time.time", return_value=1000.0):
            await cache.set("category-1", "value", ttl=10)
        with patch("store_service.app.services.cache.time.time", return_value=1011.0):
            assert await cache.get("category-1") is None
        assert "category-1" not in cache.cache

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, cache):
        await cache.set("category-1", "value")

        await cache.remove("category-1")
        await cache.remove("category-1")

        assert await cache.get("category-1") is None

    @pytest.mark.asyncio
    async def test_remove_by_pattern(self, cache):
        await cache.set("categories-root", [])
        await cache.set("categories-slug-phones", {})
        await cache.set("category-1", {})

        removed = await cache.remove_by_pattern("categories-*")

        assert removed == 2
        assert await cache.get("category-1") == {}
        assert await cache.remove_by_pattern("categories-*") == 0

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_when_full(self, cache):
        with patch("store_service.app.services.cache.time.time", side_effect=[1.0, 2.0, 3.0, 4.0, 4.0]):
            await cache.set("a", 1)
            await cache.set("b", 2)
            await cache.set("c", 3)
            await cache.set("d", 4)

        assert set(cache.cache) == {"b", "c", "d"}

    @pytest.mark.asyncio
    async def test_clear_all_and_stats(self, cache):
        await cache.set("a", 1)
        assert cache.get_stats()["entries"] == 1

        await cache.clear_all()

        assert cache.get_stats()["entries"] == 0


class TestRedisCacheService:
    @pytest.fixture
    def client(self):
        client = Mock()
        client.get = AsyncMock(return_value=None)
        client.set = AsyncMock()
        client.delete = AsyncMock(return_value=1)
        client.aclose = AsyncMock()
        return client

    @pytest.fixture
    def cache(self, client):
        return RedisCacheService(client, key_prefix="store:", default_ttl=300, scan_count=2)

    @pytest.mark.asyncio
    async def test_set_serializes_with_prefix_and_ttl(self, cache, client):
        await cache.set("category-1", {"name": "Electronics"})

        client.set.assert_awaited_once_with(
            "store:category-1", json.dumps({"name": "Electronics"}), ex=300
        )

    @pytest.mark.asyncio
    async def test_get_deserializes(self, cache, client):
        client.get.return_value = json.dumps({"name": "Electronics"})

        assert await cache.get("category-1") == {"name": "Electronics"}
        client.get.assert_awaited_once_with("store:category-1")

    @pytest.mark.asyncio
    async def test_remove(self, cache, client):
        await cache.remove("category-1")

        client.delete.assert_awaited_once_with("store:category-1")

    @pytest.mark.asyncio
    async def test_remove_by_pattern_deletes_in_batches(self, cache, client):
        keys = ["store:categories-root", "store:categories-a", "store:categories-b"]

        async def scan_iter(match, count):
            assert match == "store:categories-*"
            for key in keys:
                yield key

        client.scan_iter = scan_iter
        client.delete = AsyncMock(side_effect=[2, 1])

        removed = await cache.remove_by_pattern("categories-*")

        assert removed == 3
        assert client.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_remove_by_pattern_without_matches(self, cache, client):
        async def scan_iter(match, count):
            return
            yield

        client.scan_iter = scan_iter

        assert await cache.remove_by_pattern("orders-*") == 0
        client.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close(self, cache, client):
        await cache.close()

        client.aclose.assert_awaited_once()


class TestCreateCacheService:
    def test_memory_backend(self):
        settings = StoreSettings(STORE_DATABASE_URL="sqlite+aiosqlite://", CACHE_BACKEND="memory")

        assert isinstance(create_cache_service(settings), InMemoryCacheService)

    def test_redis_backend(self):
        settings = StoreSettings(
            STORE_DATABASE_URL="sqlite+aiosqlite://",
            CACHE_BACKEND="redis",
            REDIS_URL="redis://cache:6379/1",
        )

        cache = create_cache_service(settings)

        assert isinstance(cache, RedisCacheService)
        assert cache.key_prefix == settings.CACHE_KEY_PREFIX
