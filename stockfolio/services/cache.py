"""Quote cache - TTL caching for analysis and screener lookups.

The cache is injected into the stock service rather than living as module
state, so tests and deployments pick their own backend:

- MemoryCache: per-process, TTL plus a max-entries bound (oldest evicted first)
- RedisCache: shared between workers, TTL enforced by Redis

Values must be JSON-serializable documents.
"""

import json
import logging
import os
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any, Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300
DEFAULT_MAX_ENTRIES = 1024


class QuoteCache(Protocol):
    """Interface shared by the cache backends."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def clear(self) -> None: ...

    async def close(self) -> None: ...


class MemoryCache:
    """In-process TTL cache with a bounded number of entries."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        # key -> (expires_at, value), oldest insertion first
        self._entries: OrderedDict[str, tuple[float, Any]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any) -> None:
        if key in self._entries:
            del self._entries[key]
        self._entries[key] = (self._clock() + self.ttl, value)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted cache entry {evicted}")

    async def clear(self) -> None:
        self._entries.clear()

    async def close(self) -> None:
        self._entries.clear()


class RedisCache:
    """Redis-backed TTL cache, values stored as JSON strings."""

    def __init__(self, redis: Redis, ttl: int = DEFAULT_TTL, prefix: str = "stockfolio:"):
        self.redis = redis
        self.ttl = int(ttl)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.redis.get(self._key(key))
        except RedisError as e:
            # A cache outage degrades to a miss
            logger.warning(f"Redis get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            await self.redis.set(self._key(key), json.dumps(value), ex=self.ttl)
        except RedisError as e:
            logger.warning(f"Redis set failed for {key}: {e}")

    async def clear(self) -> None:
        keys = [key async for key in self.redis.scan_iter(match=f"{self.prefix}*")]
        if keys:
            await self.redis.delete(*keys)

    async def close(self) -> None:
        await self.redis.aclose()


def build_cache() -> QuoteCache:
    """Build the cache backend from environment settings.

    REDIS_URL selects Redis; otherwise an in-memory cache is used.
    QUOTE_CACHE_TTL (seconds) and QUOTE_CACHE_MAX_ENTRIES tune eviction.
    """
    ttl = int(os.getenv("QUOTE_CACHE_TTL", str(DEFAULT_TTL)))
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        logger.info("Using Redis quote cache")
        return RedisCache(Redis.from_url(redis_url, decode_responses=True), ttl=ttl)

    max_entries = int(os.getenv("QUOTE_CACHE_MAX_ENTRIES", str(DEFAULT_MAX_ENTRIES)))
    return MemoryCache(ttl=ttl, max_entries=max_entries)
