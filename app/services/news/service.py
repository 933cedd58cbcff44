"""
Market news feed assembled from several Marketaux queries.

The feed is built in up to three passes (global, India, keyword searches),
de-duplicated, limited to the last three days, filtered for market relevance
and sorted recent-first. A successful feed is cached; on any provider failure
or an empty result the built-in fallback feed is returned instead.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Iterable, Optional

from app.cache.cache import Cache
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.news import NewsItem

from . import client as news_client
from .client import NewsProviderError
from .fallback import get_fallback_news
from .filters import select_relevant, sort_recent_first

logger = get_logger("services.news")

FEED_CACHE_KEY = "feed"
MAX_AGE = timedelta(days=3)

GLOBAL_LIMIT = 50
INDIA_LIMIT = 20
KEYWORD_LIMIT = 10
PER_KEYWORD_MAX = 5
INDIA_PASS_BELOW = 10
KEYWORD_PASS_BELOW = 15
KEYWORD_PASS_STOP_AT = 20
SEARCH_KEYWORDS = ("stock", "market", "investment", "financial", "economy")
STOCK_NEWS_LIMIT = 50

_news_cache = Cache(prefix="news", default_ttl=settings.news_cache_ttl)


def _take_new(
    seen: set[str],
    batch: Iterable[dict[str, Any]],
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    fresh: list[dict[str, Any]] = []
    for article in batch:
        if limit is not None and len(fresh) >= limit:
            break
        uuid = article.get("uuid")
        if not uuid or uuid in seen:
            continue
        seen.add(uuid)
        fresh.append(article)
    return fresh


async def collect_articles(now: Optional[datetime] = None) -> list[dict[str, Any]]:
    """Run the query passes and return unique raw articles."""
    now = now or datetime.now(UTC)
    params = news_client.base_params(now)
    collected: list[dict[str, Any]] = []
    seen: set[str] = set()

    async with news_client.build_client() as http:
        batch = await news_client.fetch_articles(http, {**params, "limit": str(GLOBAL_LIMIT)})
        collected.extend(_take_new(seen, batch))
        logger.debug(f"Global pass returned {len(batch)} articles")

        if len(collected) < INDIA_PASS_BELOW:
            batch = await news_client.fetch_articles(
                http, {**params, "countries": "in", "limit": str(INDIA_LIMIT)}
            )
            collected.extend(_take_new(seen, batch))
            logger.debug(f"India pass returned {len(batch)} articles")

        if len(collected) < KEYWORD_PASS_BELOW:
            for keyword in SEARCH_KEYWORDS:
                if len(collected) >= KEYWORD_PASS_STOP_AT:
                    break
                try:
                    batch = await news_client.fetch_articles(
                        http, {**params, "search": keyword, "limit": str(KEYWORD_LIMIT)}
                    )
                except NewsProviderError as e:
                    logger.warning(f"Keyword search '{keyword}' failed: {e}")
                    continue
                collected.extend(_take_new(seen, batch, PER_KEYWORD_MAX))

    return collected


def build_feed(articles: Iterable[dict[str, Any]], now: Optional[datetime] = None) -> list[NewsItem]:
    """Map, age-limit, filter and sort raw articles."""
    now = now or datetime.now(UTC)
    oldest = now - MAX_AGE
    items = []
    for article in articles:
        item = news_client.to_news_item(article, now)
        if item is None or item.timestamp < oldest:
            continue
        items.append(item)
    return sort_recent_first(select_relevant(items))


async def fetch_news() -> list[NewsItem]:
    """The market news feed; never raises for provider trouble."""
    cached = await _news_cache.get(FEED_CACHE_KEY)
    if cached is not None:
        return [NewsItem.model_validate(item) for item in cached]

    if not settings.marketaux_api_key:
        logger.info("Marketaux API key not configured, using fallback news")
        return get_fallback_news()

    try:
        articles = await collect_articles()
    except NewsProviderError as e:
        logger.warning(f"News fetch failed, using fallback news: {e}")
        return get_fallback_news()

    try:
        feed = build_feed(articles)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed news reply, using fallback news: {e}")
        return get_fallback_news()

    if not feed:
        logger.info("No usable articles returned, using fallback news")
        return get_fallback_news()

    await _news_cache.set(FEED_CACHE_KEY, [item.model_dump(mode="json") for item in feed])
    logger.info(f"News feed refreshed with {len(feed)} articles")
    return feed


async def fetch_stock_specific_news(symbols: Iterable[str]) -> list[NewsItem]:
    """Articles tagged with any of ``symbols`` on NSE or BSE; [] on any error."""
    wanted = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
    if not wanted or not settings.marketaux_api_key:
        return []

    params = {
        **news_client.base_params(),
        "symbols": ",".join(f"{s}.NSE,{s}.BSE" for s in wanted),
        "limit": str(STOCK_NEWS_LIMIT),
    }
    try:
        async with news_client.build_client() as http:
            articles = await news_client.fetch_articles(http, params, strict=True)
    except NewsProviderError as e:
        logger.warning(f"Stock news fetch failed: {e}")
        return []

    now = datetime.now(UTC)
    wanted_set = set(wanted)
    try:
        items = [news_client.to_stock_news_item(article, wanted_set, now) for article in articles]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Malformed stock news reply: {e}")
        return []
    return [item for item in items if item is not None]


async def get_cached_news() -> list[NewsItem]:
    """The cached feed without calling out; [] when nothing is cached."""
    cached = await _news_cache.get(FEED_CACHE_KEY)
    if cached is None:
        return []
    return [NewsItem.model_validate(item) for item in cached]


async def clear_news_cache() -> None:
    await _news_cache.delete(FEED_CACHE_KEY)
    logger.info("News cache cleared")


async def is_cache_active() -> bool:
    return await _news_cache.exists(FEED_CACHE_KEY)


async def cache_ttl_remaining() -> int:
    return await _news_cache.ttl(FEED_CACHE_KEY)
