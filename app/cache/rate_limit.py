"""Fixed-window rate limiting on the cache backend."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Optional, Tuple

from app.core.config import settings
from app.core.exceptions import RateLimitError
from app.core.logging import get_logger

from .client import get_cache_client

logger = get_logger("cache.rate_limit")

RATE_LIMIT_PREFIX = "stocksense:rate_limit"

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "s": 1,
    "minute": 60,
    "min": 60,
    "m": 60,
    "hour": 3600,
    "hr": 3600,
    "h": 3600,
    "day": 86400,
    "d": 86400,
}

_RATE_RE = re.compile(r"^\s*(\d+)\s*/\s*(\d*)\s*([a-z]+?)s?\s*$")


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float
    limit: int


class RateLimiter:
    """
    Counts requests per identifier in consecutive windows of ``window``
    seconds. The first hit of a window creates the counter with an expiry,
    so the counter resets itself.
    """

    def __init__(self, key_prefix: str, limit: int, window: int):
        self.key_prefix = key_prefix
        self.limit = limit
        self.window = window

    def _get_key(self, identifier: str) -> str:
        return f"{RATE_LIMIT_PREFIX}:{self.key_prefix}:{identifier}"

    async def check(self, identifier: str) -> RateLimitResult:
        key = self._get_key(identifier)
        now = time.time()
        try:
            client = await get_cache_client()
            count = await client.incr(key)
            if count == 1:
                await client.expire(key, self.window)
            remaining_ttl = await client.ttl(key)
            if remaining_ttl < 0:
                # Counter lost its expiry (e.g. crash between INCR and EXPIRE)
                await client.expire(key, self.window)
                remaining_ttl = self.window
        except Exception as e:
            logger.error(f"Rate limit check failed: {e}")
            # Fail open
            return RateLimitResult(
                allowed=True,
                remaining=self.limit,
                reset_at=now + self.window,
                limit=self.limit,
            )

        return RateLimitResult(
            allowed=count <= self.limit,
            remaining=max(0, self.limit - count),
            reset_at=now + remaining_ttl,
            limit=self.limit,
        )

    async def is_allowed(self, identifier: str) -> bool:
        result = await self.check(identifier)
        return result.allowed


def parse_rate_limit(rate_string: str) -> Tuple[int, int]:
    """
    Parse rate limit strings like "100/minute", "10/hour" or "100/15minutes".

    Returns (limit, window_in_seconds)
    """
    match = _RATE_RE.match(rate_string.lower())
    if not match:
        raise ValueError(f"Invalid rate limit format: {rate_string}")

    limit_str, multiplier_str, unit = match.groups()
    if unit not in _UNIT_SECONDS:
        raise ValueError(f"Unknown time unit: {unit}")

    multiplier = int(multiplier_str) if multiplier_str else 1
    if multiplier < 1:
        raise ValueError(f"Invalid rate limit window: {rate_string}")
    return int(limit_str), multiplier * _UNIT_SECONDS[unit]


def get_auth_rate_limiter() -> RateLimiter:
    limit, window = parse_rate_limit(settings.rate_limit_auth)
    return RateLimiter("auth", limit, window)


def get_api_rate_limiter() -> RateLimiter:
    limit, window = parse_rate_limit(settings.rate_limit_api)
    return RateLimiter("api", limit, window)


async def check_rate_limit(
    identifier: str,
    limiter: Optional[RateLimiter] = None,
    key_prefix: str = "api",
) -> RateLimitResult:
    """
    Check rate limit and raise exception if exceeded.

    Raises:
        RateLimitError: If rate limit exceeded
    """
    if not settings.rate_limit_enabled:
        return RateLimitResult(allowed=True, remaining=999, reset_at=0, limit=999)

    if limiter is None:
        limiter = get_auth_rate_limiter() if key_prefix == "auth" else get_api_rate_limiter()

    result = await limiter.check(identifier)
    if not result.allowed:
        retry_after = max(1, int(result.reset_at - time.time()))
        logger.warning(
            "Rate limit exceeded",
            extra={"limiter": limiter.key_prefix, "limit": result.limit},
        )
        raise RateLimitError(
            message=f"Rate limit exceeded. Try again in {retry_after} seconds.",
            details={
                "limit": result.limit,
                "retry_after": retry_after,
            },
        )
    return result
