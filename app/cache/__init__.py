"""Cache module: TTL cache, rate limiting and token revocation."""

from .cache import (
    Cache,
    cache_key,
)
from .client import (
    cache_healthcheck,
    close_cache_client,
    get_cache_client,
    reset_memory_store,
)
from .memory import MemoryStore
from .rate_limit import (
    RateLimiter,
    check_rate_limit,
    parse_rate_limit,
)


__all__ = [
    "Cache",
    "MemoryStore",
    "RateLimiter",
    "cache_healthcheck",
    "cache_key",
    "check_rate_limit",
    "close_cache_client",
    "get_cache_client",
    "parse_rate_limit",
    "reset_memory_store",
]
