"""
Cache backends for Store Service

Values are JSON-compatible structures. Every removal operation is idempotent:
removing a key that is already gone is not an error.
"""

import asyncio
import fnmatch
import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import redis.asyncio as redis

from ...core.settings import StoreSettings, get_settings
from ...utils.logging import setup_store_logging

logger = setup_store_logging("store_service.cache", log_level=get_settings().LOG_LEVEL)


class CacheService(ABC):
    """Cache port used by services and invalidation handlers"""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        pass

    @abstractmethod
    async def remove_by_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob ``pattern``; returns the count"""
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        pass

    async def close(self) -> None:
        pass


class InMemoryCacheService(CacheService):
    """Simple in-memory cache with TTL support"""

    def __init__(self, max_size: int = 10000, default_ttl: int = 600):
        self.cache: Dict[str, Dict[str, Any]] = {}
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        entry = self.cache.get(key)
        if entry is None:
            return None
        if time.time() >= entry["expires_at"]:
            # Expired, remove it
            self.cache.pop(key, None)
            return None
        return entry["value"]

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set value in cache with TTL"""
        async with self._lock:
            if len(self.cache) >= self.max_size and key not in self.cache:
                self._cleanup_expired()
                if len(self.cache) >= self.max_size:
                    # Evict the oldest entry
                    oldest = min(self.cache, key=lambda k: self.cache[k]["created_at"])
                    self.cache.pop(oldest, None)

            now = time.time()
            self.cache[key] = {
                "value": value,
                "expires_at": now + (ttl if ttl is not None else self.default_ttl),
                "created_at": now,
            }

    async def remove(self, key: str) -> None:
        self.cache.pop(key, None)

    async def remove_by_pattern(self, pattern: str) -> int:
        async with self._lock:
            matched = [key for key in self.cache if fnmatch.fnmatchcase(key, pattern)]
            for key in matched:
                self.cache.pop(key, None)
        return len(matched)

    async def clear_all(self) -> None:
        self.cache.clear()

    def _cleanup_expired(self) -> None:
        """Remove expired entries"""
        current_time = time.time()
        expired_keys = [
            key
            for key, entry in self.cache.items()
            if current_time >= entry["expires_at"]
        ]
        for key in expired_keys:
            del self.cache[key]

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics"""
        total_entries = len(self.cache)
        current_time = time.time()
        expired_count = sum(
            1 for entry in self.cache.values() if current_time >= entry["expires_at"]
        )
        return {
            "entries": total_entries,
            "expired_entries": expired_count,
            "active_entries": total_entries - expired_count,
            "max_size": self.max_size,
        }


class RedisCacheService(CacheService):
    """Redis-backed cache; all keys live under ``key_prefix``"""

    def __init__(
        self,
        client: "redis.Redis",
        key_prefix: str = "store:",
        default_ttl: int = 600,
        scan_count: int = 500,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.default_ttl = default_ttl
        self.scan_count = scan_count

    @classmethod
    def from_url(
        cls, redis_url: str, key_prefix: str = "store:", default_ttl: int = 600
    ) -> "RedisCacheService":
        client = redis.from_url(redis_url, decode_responses=True)  # type: ignore[misc]
        return cls(client, key_prefix=key_prefix, default_ttl=default_ttl)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        raw = await self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        await self.client.set(
            self._key(key),
            json.dumps(value, default=str),
            ex=ttl if ttl is not None else self.default_ttl,
        )

    async def remove(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def remove_by_pattern(self, pattern: str) -> int:
        removed = 0
        batch = []
        async for key in self.client.scan_iter(
            match=self._key(pattern), count=self.scan_count
        ):
            batch.append(key)
            if len(batch) >= self.scan_count:
                removed += await self.client.delete(*batch)
                batch = []
        if batch:
            removed += await self.client.delete(*batch)
        return removed

    async def clear_all(self) -> None:
        await self.remove_by_pattern("*")

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())  # type: ignore[misc]
        except redis.RedisError as e:
            logger.warning(
                "Redis ping failed", extra={"error": str(e), "operation": "cache_ping"}
            )
            return False

    async def close(self) -> None:
        await self.client.aclose()


def create_cache_service(settings: Optional[StoreSettings] = None) -> CacheService:
    """Build the cache backend selected by ``CACHE_BACKEND``"""
    settings = settings or get_settings()
    if settings.CACHE_BACKEND == "redis":
        logger.info(
            "Using Redis cache backend",
            extra={"key_prefix": settings.CACHE_KEY_PREFIX},
        )
        return RedisCacheService.from_url(
            settings.REDIS_URL,
            key_prefix=settings.CACHE_KEY_PREFIX,
            default_ttl=settings.CACHE_TTL_DEFAULT,
        )

    logger.info("Using in-memory cache backend")
    return InMemoryCacheService(
        max_size=settings.CACHE_MAX_ENTRIES, default_ttl=settings.CACHE_TTL_DEFAULT
    )
