"""Namespaced JSON cache over the configured backend."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Optional, Union

from app.core.config import settings
from app.core.logging import get_logger

from .client import get_cache_client

logger = get_logger("cache")

CACHE_PREFIX = "stocksense"
CACHE_VERSION = "v1"


def cache_key(*parts: Union[str, int, float], prefix: str = "cache") -> str:
    """
    Generate a consistent cache key from parts.

    Usage:
        cache_key("quote", "TCS") -> "stocksense:v1:cache:quote:TCS"
    """
    sanitized = [str(part).replace(":", "_") for part in parts]
    return f"{CACHE_PREFIX}:{CACHE_VERSION}:{prefix}:{':'.join(sanitized)}"


def _serialize(value: Any) -> str:
    return json.dumps(value, default=str)


def _deserialize(value: str) -> Any:
    return json.loads(value)


class Cache:
    """JSON values under one key prefix, each with a TTL.

    Backend failures are logged and treated as misses so callers fall through
    to the provider.
    """

    def __init__(self, prefix: str = "cache", default_ttl: Optional[int] = None):
        self.prefix = prefix
        self.default_ttl = default_ttl or settings.cache_default_ttl

    def key(self, key: str) -> str:
        return cache_key(key, prefix=self.prefix)

    async def get(self, key: str) -> Optional[Any]:
        full_key = self.key(key)
        try:
            client = await get_cache_client()
            value = await client.get(full_key)
        except Exception as e:
            logger.warning(f"Cache get failed: {e}")
            return None
        if value is None:
            logger.debug(f"Cache miss: {full_key}")
            return None
        logger.debug(f"Cache hit: {full_key}")
        return _deserialize(value)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        full_key = self.key(key)
        try:
            client = await get_cache_client()
            await client.set(full_key, _serialize(value), ex=ttl or self.default_ttl)
            logger.debug(f"Cache set: {full_key}, TTL: {ttl or self.default_ttl}s")
            return True
        except Exception as e:
            logger.warning(f"Cache set failed: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            client = await get_cache_client()
            await client.delete(self.key(key))
            return True
        except Exception as e:
            logger.warning(f"Cache delete failed: {e}")
            return False

    async def exists(self, key: str) -> bool:
        try:
            client = await get_cache_client()
            return bool(await client.exists(self.key(key)))
        except Exception as e:
            logger.warning(f"Cache exists failed: {e}")
            return False

    async def ttl(self, key: str) -> int:
        """Remaining seconds for ``key``, 0 when absent."""
        try:
            client = await get_cache_client()
            remaining = await client.ttl(self.key(key))
        except Exception as e:
            logger.warning(f"Cache ttl failed: {e}")
            return 0
        return max(0, remaining)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Any],
        ttl: Optional[int] = None,
    ) -> Any:
        """Get from cache or compute and cache value (cache-aside pattern)."""
        value = await self.get(key)
        if value is not None:
            return value

        if asyncio.iscoroutinefunction(factory):
            value = await factory()
        else:
            value = factory()

        if value is not None:
            await self.set(key, value, ttl)
        return value

    async def clear(self) -> int:
        """Delete every key under this prefix. Returns the number removed."""
        pattern = cache_key("*", prefix=self.prefix)
        try:
            client = await get_cache_client()
            keys = [key async for key in client.scan_iter(match=pattern, count=100)]
            if keys:
                await client.delete(*keys)
        except Exception as e:
            logger.warning(f"Cache clear failed: {e}")
            return 0
        logger.info(f"Cleared {len(keys)} keys", extra={"prefix": self.prefix})
        return len(keys)
