"""Market news: provider client, relevance heuristics, fallback feed."""

from .fallback import get_fallback_news
from .filters import categorize, filter_news_by_stocks
from .service import (
    cache_ttl_remaining,
    clear_news_cache,
    fetch_news,
    fetch_stock_specific_news,
    get_cached_news,
    is_cache_active,
)

__all__ = [
    "cache_ttl_remaining",
    "categorize",
    "clear_news_cache",
    "fetch_news",
    "fetch_stock_specific_news",
    "filter_news_by_stocks",
    "get_cached_news",
    "get_fallback_news",
    "is_cache_active",
]
