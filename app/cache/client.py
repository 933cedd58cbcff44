"""Cache backend connection management.

``CACHE_BACKEND=memory`` (the default) keeps everything in-process;
``CACHE_BACKEND=valkey`` connects to Valkey with ``redis.asyncio``.
"""

from __future__ import annotations

import asyncio
from typing import Union

from redis.asyncio import ConnectionPool, Redis

from app.core.config import settings
from app.core.logging import get_logger

from .memory import MemoryStore


logger = get_logger("cache.client")

CacheClient = Union[Redis, MemoryStore]

# Valkey pools are bound to the event loop that created them
_pools: dict[int, ConnectionPool] = {}
_clients: dict[int, Redis] = {}
_memory_store: MemoryStore | None = None


def _get_loop_id() -> int:
    try:
        return id(asyncio.get_running_loop())
    except RuntimeError:
        return 0


async def init_valkey_pool() -> ConnectionPool:
    """Initialize Valkey connection pool for current event loop."""
    loop_id = _get_loop_id()
    if loop_id not in _pools:
        _pools[loop_id] = ConnectionPool.from_url(
            settings.valkey_url,
            max_connections=settings.valkey_max_connections,
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        logger.info("Valkey connection pool initialized", extra={"loop_id": loop_id})
    return _pools[loop_id]


async def get_valkey_client() -> Redis:
    loop_id = _get_loop_id()
    if loop_id not in _clients:
        pool = await init_valkey_pool()
        _clients[loop_id] = Redis(connection_pool=pool)
    return _clients[loop_id]


def get_memory_store() -> MemoryStore:
    global _memory_store
    if _memory_store is None:
        _memory_store = MemoryStore()
    return _memory_store


async def get_cache_client() -> CacheClient:
    """Return the configured backend client."""
    if settings.cache_backend == "valkey":
        return await get_valkey_client()
    return get_memory_store()


async def close_cache_client() -> None:
    """Release backend connections for the current event loop."""
    loop_id = _get_loop_id()
    if loop_id in _clients:
        await _clients.pop(loop_id).aclose()
    if loop_id in _pools:
        await _pools.pop(loop_id).disconnect()
        logger.info("Valkey connection pool closed", extra={"loop_id": loop_id})


def reset_memory_store() -> None:
    """Drop every in-process entry."""
    global _memory_store
    _memory_store = None


async def cache_healthcheck() -> bool:
    try:
        client = await get_cache_client()
        result = await asyncio.wait_for(client.ping(), timeout=5.0)
        return result is True or result == "PONG"
    except Exception as e:
        logger.warning(f"Cache healthcheck failed: {e}")
        return False
