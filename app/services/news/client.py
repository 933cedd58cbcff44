"""Marketaux ``/news/all`` requests and article mapping."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Optional

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.news import NewsItem

from .filters import categorize

logger = get_logger("services.news.client")

RECENT_WINDOW = timedelta(hours=24)


class NewsProviderError(Exception):
    """The news provider could not be reached or returned garbage."""


def build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=float(settings.external_api_timeout))


def published_after(now: Optional[datetime] = None) -> str:
    """Date (YYYY-MM-DD) 24 hours before ``now``."""
    now = now or datetime.now(UTC)
    return (now - RECENT_WINDOW).date().isoformat()


def base_params(now: Optional[datetime] = None) -> dict[str, str]:
    return {
        "api_token": settings.marketaux_api_key,
        "filter_entities": "true",
        "published_after": published_after(now),
        "sort": "published_desc",
        "language": "en",
    }


async def fetch_articles(
    client: httpx.AsyncClient,
    params: dict[str, str],
    *,
    strict: bool = False,
) -> list[dict[str, Any]]:
    """
    GET ``/news/all`` and return its ``data`` list.

    A non-2xx reply yields [] unless ``strict``; transport errors always raise
    ``NewsProviderError``.
    """
    url = f"{settings.marketaux_base_url.rstrip('/')}/news/all"
    try:
        response = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise NewsProviderError(f"News request failed: {e}") from e

    if response.is_error:
        if strict:
            raise NewsProviderError(f"News provider returned {response.status_code}")
        logger.warning(f"News provider returned {response.status_code}")
        return []

    try:
        payload = response.json()
    except ValueError as e:
        raise NewsProviderError("News provider returned invalid JSON") from e

    data = payload.get("data") if isinstance(payload, dict) else None
    return [article for article in (data or []) if isinstance(article, dict)]


def parse_published_at(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _summary(article: dict[str, Any]) -> str:
    return article.get("description") or article.get("snippet") or ""


def _entities(article: dict[str, Any]) -> list[dict[str, Any]]:
    entities = article.get("entities")
    if not isinstance(entities, list):
        return []
    return [entity for entity in entities if isinstance(entity, dict)]


def to_news_item(article: dict[str, Any], now: Optional[datetime] = None) -> Optional[NewsItem]:
    """Map a feed article; relevant stocks are Indian equity entities."""
    published = parse_published_at(article.get("published_at"))
    if published is None or not article.get("uuid"):
        return None

    now = now or datetime.now(UTC)
    headline = article.get("title") or ""
    summary = _summary(article)
    stocks = [
        entity.get("symbol")
        for entity in _entities(article)
        if entity.get("type") == "equity"
        and entity.get("country") == "in"
        and isinstance(entity.get("symbol"), str)
        and entity["symbol"]
    ]
    return NewsItem(
        id=article["uuid"],
        headline=headline,
        summary=summary,
        source=article.get("source") or "",
        timestamp=published,
        url=article.get("url"),
        relevant_stocks=stocks,
        category=categorize(headline, summary),
        is_recent=published >= now - RECENT_WINDOW,
    )


def to_stock_news_item(
    article: dict[str, Any],
    symbols: set[str],
    now: Optional[datetime] = None,
) -> Optional[NewsItem]:
    """Map an article from a symbol query; keeps only the requested symbols."""
    item = to_news_item(article, now)
    if item is None:
        return None

    stocks = []
    for entity in _entities(article):
        symbol = entity.get("symbol")
        if entity.get("type") != "equity" or not isinstance(symbol, str) or not symbol:
            continue
        bare = symbol.split(".")[0].upper()
        if bare in symbols and bare not in stocks:
            stocks.append(bare)
    return item.model_copy(update={"relevant_stocks": stocks})
