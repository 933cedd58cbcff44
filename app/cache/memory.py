"""In-process key/value store with per-key expiry.

Implements the subset of the ``redis.asyncio.Redis`` API the cache layer
uses, so ``Cache``, the rate limiter and the token blacklist run unchanged
against either backend. Expired keys are dropped lazily on access; there is
no eviction under memory pressure.
"""

from __future__ import annotations

import asyncio
import fnmatch
import time
from typing import Any, AsyncIterator, Optional


class MemoryStore:
    """Expiry-checked dict guarded by an asyncio lock."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[Any, Optional[float]]] = {}
        self._lock = asyncio.Lock()

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return False
        return True

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> Optional[Any]:
        if not self._alive(key):
            return None
        return self._data[key][0]

    async def set(
        self,
        key: str,
        value: Any,
        ex: Optional[int] = None,
        nx: bool = False,
    ) -> Optional[bool]:
        async with self._lock:
            if nx and self._alive(key):
                return None
            expires_at = time.monotonic() + ex if ex else None
            self._data[key] = (value, expires_at)
            return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        async with self._lock:
            for key in keys:
                if self._alive(key):
                    del self._data[key]
                    removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._alive(key))

    async def incr(self, key: str, amount: int = 1) -> int:
        async with self._lock:
            if self._alive(key):
                value, expires_at = self._data[key]
                value = int(value) + amount
            else:
                value, expires_at = amount, None
            self._data[key] = (value, expires_at)
            return value

    async def expire(self, key: str, seconds: int) -> bool:
        async with self._lock:
            if not self._alive(key):
                return False
            value, _ = self._data[key]
            self._data[key] = (value, time.monotonic() + seconds)
            return True

    async def ttl(self, key: str) -> int:
        """Seconds left; -1 when the key has no expiry, -2 when missing."""
        if not self._alive(key):
            return -2
        expires_at = self._data[key][1]
        if expires_at is None:
            return -1
        return max(0, int(expires_at - time.monotonic() + 0.999))

    async def scan_iter(self, match: str = "*", count: int = 100) -> AsyncIterator[str]:
        for key in list(self._data):
            if fnmatch.fnmatchcase(key, match) and self._alive(key):
                yield key

    async def flushdb(self) -> bool:
        async with self._lock:
            self._data.clear()
        return True

    async def aclose(self) -> None:
        return None

    def __len__(self) -> int:
        return sum(1 for key in list(self._data) if self._alive(key))
