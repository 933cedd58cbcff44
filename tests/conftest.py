"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

# Settings are read once at import time; pin them before anything imports app.*
os.environ.setdefault("AUTH_SECRET", "test-secret-key-for-jwt-signing-0123456789")
os.environ["CACHE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ALPHA_VANTAGE_API_KEY"] = ""
os.environ["MARKETAUX_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["AI_REQUEST_DELAY"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FORMAT"] = "text"
os.environ.pop("ADMIN_EMAIL", None)
os.environ.pop("ADMIN_PASSWORD", None)

from datetime import UTC, datetime, timedelta
from typing import AsyncGenerator, Callable, Generator

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

pytest_plugins = ["pytest_asyncio"]


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Fresh SQLite file, empty cache and no model client for every test."""
    import app.database.connection as db_conn
    from app.cache.client import reset_memory_store
    from app.core.config import settings
    from app.services.openai import reset_client_manager

    monkeypatch.setattr(
        settings, "database_url", f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite'}"
    )
    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    monkeypatch.setattr(settings, "alpha_vantage_api_key", "")
    monkeypatch.setattr(settings, "marketaux_api_key", "")

    db_conn._engine = None
    db_conn._session_factory = None
    reset_memory_store()
    reset_client_manager()

    yield

    db_conn._engine = None
    db_conn._session_factory = None
    reset_memory_store()
    reset_client_manager()


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[None, None]:
    """Schema on the per-test SQLite file, for repository and service tests."""
    from app.database.connection import close_database, init_database

    await init_database()
    yield
    await close_database()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client for the full application (API mounted at /api)."""
    from app.main import create_app

    app = create_app()
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def signup(client: TestClient) -> Callable[..., dict]:
    """Create an account through the API and return the response body."""

    def _signup(
        email: str = "asha@example.com",
        password: str = "s3cret-pass",
        name: str = "Asha Rao",
    ) -> dict:
        response = client.post(
            "/api/signup", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _signup


@pytest.fixture
def auth_headers(signup) -> dict:
    """Authorization headers for a freshly signed-up user."""
    return {"Authorization": f"Bearer {signup()['token']}"}


@pytest.fixture
def mock_http(monkeypatch) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """
    Route the market data and news clients through an ``httpx.MockTransport``.

    Usage:
        mock_http(lambda request: httpx.Response(200, json={...}))
    """
    from app.core.config import settings
    from app.services import market_data
    from app.services.news import client as news_client

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        def build() -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(handler))

        monkeypatch.setattr(market_data, "_build_client", build)
        monkeypatch.setattr(news_client, "build_client", build)
        monkeypatch.setattr(settings, "alpha_vantage_api_key", "test-av-key")
        monkeypatch.setattr(settings, "marketaux_api_key", "test-mx-key")

    return _install


def make_article(
    uuid: str,
    title: str,
    description: str = "",
    *,
    hours_ago: float = 1,
    entities: list[dict] | None = None,
    source: str = "economictimes.com",
    now: datetime | None = None,
) -> dict:
    """Article in the shape the news provider returns."""
    now = now or datetime.now(UTC)
    return {
        "uuid": uuid,
        "title": title,
        "description": description,
        "snippet": "",
        "url": f"https://news.example.com/{uuid}",
        "source": source,
        "published_at": (now - timedelta(hours=hours_ago)).isoformat().replace("+00:00", "Z"),
        "entities": entities or [],
    }


@pytest.fixture
def article_factory() -> Callable[..., dict]:
    return make_article
