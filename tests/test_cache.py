"""Tests for the memory store, JSON cache, rate limiter and token blacklist."""

from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from app.cache import Cache, MemoryStore, RateLimiter, cache_key, check_rate_limit, parse_rate_limit
from app.cache.client import get_memory_store
from app.cache.token_blacklist import blacklist_token, is_token_blacklisted
from app.core.config import settings
from app.core.exceptions import RateLimitError


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        store = MemoryStore()
        assert await store.set("a", "1") is True
        assert await store.get("a") == "1"
        assert await store.exists("a", "missing") == 1
        assert await store.delete("a", "missing") == 1
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_expired_keys_disappear(self):
        store = MemoryStore()
        await store.set("k", "v", ex=60)
        assert 0 < await store.ttl("k") <= 60

        store._data["k"] = ("v", time.monotonic() - 1)
        assert await store.get("k") is None
        assert await store.ttl("k") == -2

    @pytest.mark.asyncio
    async def test_nx_keeps_existing_value(self):
        store = MemoryStore()
        await store.set("k", "first")
        assert await store.set("k", "second", nx=True) is None
        assert await store.get("k") == "first"

    @pytest.mark.asyncio
    async def test_incr_and_expire(self):
        store = MemoryStore()
        assert await store.incr("counter") == 1
        assert await store.incr("counter") == 2
        assert await store.ttl("counter") == -1
        assert await store.expire("counter", 30) is True
        assert await store.expire("missing", 30) is False

    @pytest.mark.asyncio
    async def test_scan_iter_matches_glob(self):
        store = MemoryStore()
        await store.set("news:feed", "1")
        await store.set("quote:TCS", "2")
        await store.set("quote:INFY", "3")
        keys = sorted([key async for key in store.scan_iter(match="quote:*")])
        assert keys == ["quote:INFY", "quote:TCS"]
        assert len(store) == 3


class TestCache:
    def test_cache_key(self):
        assert cache_key("quote", "NSE:TCS") == "stocksense:v1:cache:quote:NSE_TCS"
        assert cache_key("feed", prefix="news") == "stocksense:v1:news:feed"

    @pytest.mark.asyncio
    async def test_json_round_trip_with_ttl(self):
        cache = Cache(prefix="test", default_ttl=120)
        await cache.set("item", {"price": 10.5, "tags": ["a"]})

        assert await cache.get("item") == {"price": 10.5, "tags": ["a"]}
        assert await cache.exists("item") is True
        assert 0 < await cache.ttl("item") <= 120
        assert await cache.ttl("absent") == 0

    @pytest.mark.asyncio
    async def test_get_or_set_calls_factory_once(self):
        cache = Cache(prefix="test")
        calls = []

        async def factory():
            calls.append(1)
            return {"value": 1}

        assert await cache.get_or_set("k", factory) == {"value": 1}
        assert await cache.get_or_set("k", factory) == {"value": 1}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_clear_only_touches_own_prefix(self):
        quotes = Cache(prefix="quote")
        news = Cache(prefix="news")
        await quotes.set("TCS", 1)
        await quotes.set("INFY", 2)
        await news.set("feed", [])

        assert await quotes.clear() == 2
        assert await quotes.get("TCS") is None
        assert await news.get("feed") == []

    @pytest.mark.asyncio
    async def test_backend_failure_is_a_miss(self, monkeypatch):
        from app.cache import cache as cache_module

        async def broken_client():
            raise ConnectionError("cache down")

        monkeypatch.setattr(cache_module, "get_cache_client", broken_client)
        cache = Cache(prefix="test")
        assert await cache.get("k") is None
        assert await cache.set("k", 1) is False
        assert await cache.clear() == 0


class TestParseRateLimit:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("100/minute", (100, 60)),
            ("10/hour", (10, 3600)),
            ("5/second", (5, 1)),
            ("100/15minutes", (100, 900)),
            ("1000/day", (1000, 86400)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_rate_limit(text) == expected

    @pytest.mark.parametrize("text", ["", "100", "ten/minute", "5/fortnight", "5/0minutes"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_rate_limit(text)


class TestRateLimiter:
    @pytest.mark.asyncio
    async def test_window_counts_per_identifier(self):
        limiter = RateLimiter("test", limit=2, window=60)

        first = await limiter.check("ip:1")
        second = await limiter.check("ip:1")
        third = await limiter.check("ip:1")

        assert (first.allowed, first.remaining) == (True, 1)
        assert (second.allowed, second.remaining) == (True, 0)
        assert third.allowed is False
        assert await limiter.is_allowed("ip:2") is True

    @pytest.mark.asyncio
    async def test_check_rate_limit_raises_with_retry_after(self, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        limiter = RateLimiter("test", limit=1, window=60)

        await check_rate_limit("user:1", limiter=limiter)
        with pytest.raises(RateLimitError) as exc_info:
            await check_rate_limit("user:1", limiter=limiter)

        assert exc_info.value.status_code == 429
        assert 1 <= exc_info.value.details["retry_after"] <= 60

    @pytest.mark.asyncio
    async def test_disabled_limiter_always_allows(self):
        limiter = RateLimiter("test", limit=0, window=60)
        result = await check_rate_limit("user:1", limiter=limiter)
        assert result.allowed is True
        assert len(get_memory_store()) == 0

    def test_login_endpoint_is_rate_limited(self, client: TestClient, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_enabled", True)
        monkeypatch.setattr(settings, "rate_limit_auth", "2/minute")
        body = {"email": "someone@example.com", "password": "wrong-pass"}

        assert client.post("/api/login", json=body).status_code == status.HTTP_401_UNAUTHORIZED
        assert client.post("/api/login", json=body).status_code == status.HTTP_401_UNAUTHORIZED

        response = client.post("/api/login", json=body)
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.json()["error"] == "RATE_LIMIT_EXCEEDED"
        assert int(response.headers["Retry-After"]) >= 1


class TestTokenBlacklist:
    @pytest.mark.asyncio
    async def test_blacklisted_until_expiry(self):
        exp = datetime.now(timezone.utc) + timedelta(minutes=5)
        assert await blacklist_token("jti-123", exp) is True
        assert await is_token_blacklisted("jti-123") is True
        assert await is_token_blacklisted("jti-456") is False

    @pytest.mark.asyncio
    async def test_already_expired_token_is_not_stored(self):
        exp = datetime.now(timezone.utc) - timedelta(seconds=1)
        assert await blacklist_token("old-jti", exp) is True
        assert await is_token_blacklisted("old-jti") is False
