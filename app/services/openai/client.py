"""
Async chat-completion client manager with connection pooling and circuit breaker.

The manager hands out a shared ``AsyncOpenAI`` client pointed at the
configured base URL, recreates it after its TTL, and refuses requests while
the circuit is open so callers go straight to their local fallbacks.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

import httpx
from openai import AsyncOpenAI

from app.core.logging import get_logger
from app.services.openai.config import OpenAISettings, get_settings


logger = get_logger("openai.client")


@dataclass
class CircuitBreakerState:
    failures: int = 0
    last_failure: datetime | None = None
    is_open: bool = False
    opened_at: datetime | None = None

    def record_failure(self) -> None:
        self.failures += 1
        self.last_failure = datetime.now(UTC)

    def record_success(self) -> None:
        self.failures = 0
        self.is_open = False
        self.opened_at = None

    def open_circuit(self) -> None:
        self.is_open = True
        self.opened_at = datetime.now(UTC)
        logger.warning(f"Circuit breaker opened after {self.failures} failures")

    def should_allow_request(self, timeout_seconds: int) -> bool:
        if not self.is_open:
            return True

        # Half-open: let one request probe after the timeout
        if self.opened_at:
            elapsed = (datetime.now(UTC) - self.opened_at).total_seconds()
            if elapsed >= timeout_seconds:
                logger.info("Circuit breaker half-open, allowing test request")
                return True

        return False


class OpenAIClientManager:
    """
    Owns the model client and its circuit breaker.

    Usage:
        manager = OpenAIClientManager()
        client = await manager.get_client()
        if client:
            response = await client.chat.completions.create(...)
    """

    def __init__(self, settings: OpenAISettings | None = None):
        self._settings = settings or get_settings()
        self._client: AsyncOpenAI | None = None
        self._created_at: datetime | None = None
        self._lock = asyncio.Lock()
        self._circuit_breaker = CircuitBreakerState()
        self._http_client: httpx.AsyncClient | None = None

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.api_key)

    def _is_client_expired(self) -> bool:
        if not self._created_at:
            return True
        return datetime.now(UTC) - self._created_at > self._settings.client_ttl

    async def get_client(self) -> AsyncOpenAI | None:
        """
        Get or create the client.

        Returns None when no API key is configured or the circuit is open.
        """
        if not self._circuit_breaker.should_allow_request(
            self._settings.circuit_breaker_timeout
        ):
            logger.warning("Circuit breaker open, rejecting request")
            return None

        async with self._lock:
            if self._client is not None and not self._is_client_expired():
                return self._client

            if not self._settings.api_key:
                logger.debug("Model API key not configured")
                return None

            await self._close_client()

            self._http_client = httpx.AsyncClient(
                limits=httpx.Limits(
                    max_connections=self._settings.max_connections,
                    max_keepalive_connections=max(1, self._settings.max_connections // 2),
                ),
                timeout=httpx.Timeout(self._settings.request_timeout, connect=10.0),
            )
            self._client = AsyncOpenAI(
                api_key=self._settings.api_key,
                base_url=self._settings.base_url,
                max_retries=0,
                default_headers={
                    "HTTP-Referer": self._settings.site_url,
                    "X-Title": self._settings.site_name,
                },
                http_client=self._http_client,
            )
            self._created_at = datetime.now(UTC)
            logger.debug("Created new model client")
            return self._client

    async def _close_client(self) -> None:
        if self._http_client:
            try:
                await self._http_client.aclose()
            except httpx.HTTPError as e:
                logger.debug(f"Error closing HTTP client: {e}")
            self._http_client = None

        self._client = None
        self._created_at = None

    def record_success(self) -> None:
        self._circuit_breaker.record_success()

    def record_failure(self) -> None:
        self._circuit_breaker.record_failure()
        if self._circuit_breaker.failures >= self._settings.circuit_breaker_threshold:
            self._circuit_breaker.open_circuit()

    def is_circuit_open(self) -> bool:
        return self._circuit_breaker.is_open

    async def close(self) -> None:
        async with self._lock:
            await self._close_client()


_manager: OpenAIClientManager | None = None


async def get_client_manager() -> OpenAIClientManager:
    """Get or create the global client manager."""
    global _manager
    if _manager is None:
        _manager = OpenAIClientManager()
    return _manager


async def close_client_manager() -> None:
    global _manager
    if _manager is not None:
        await _manager.close()
        _manager = None


def reset_client_manager(manager: OpenAIClientManager | None = None) -> None:
    """Replace the global manager (None drops it so the next call rebuilds)."""
    global _manager
    _manager = manager
