"""Revoked JWTs, kept until they would have expired anyway.

Logout adds the token's ``jti`` here; every authenticated request checks it.
"""

from __future__ import annotations

from datetime import datetime, timezone

from app.core.logging import get_logger

from .client import get_cache_client

logger = get_logger("cache.token_blacklist")

BLACKLIST_PREFIX = "stocksense:token_blacklist"


async def blacklist_token(jti: str, exp: datetime) -> bool:
    """Revoke the token identified by ``jti`` until ``exp``."""
    ttl_seconds = int((exp - datetime.now(timezone.utc)).total_seconds())
    if ttl_seconds <= 0:
        return True

    try:
        client = await get_cache_client()
        await client.set(f"{BLACKLIST_PREFIX}:{jti}", "revoked", ex=ttl_seconds)
    except Exception as e:
        logger.error(f"Failed to blacklist token: {e}")
        return False

    logger.info(f"Token blacklisted: {jti[:8]}... (expires in {ttl_seconds}s)")
    return True


async def is_token_blacklisted(jti: str) -> bool:
    try:
        client = await get_cache_client()
        return bool(await client.exists(f"{BLACKLIST_PREFIX}:{jti}"))
    except Exception as e:
        # Fail open so a cache outage does not lock every user out
        logger.error(f"Failed to check token blacklist: {e}")
        return False
