"""Keyword heuristics for categorizing and filtering news items.

All checks are case-insensitive substring tests over ``headline + summary``.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence

from app.schemas.news import NewsItem

POLICY_KEYWORDS = ("rbi", "policy", "regulation", "government")
ECONOMY_KEYWORDS = ("gdp", "inflation", "economy", "economic")
MARKET_CATEGORY_KEYWORDS = ("nifty", "sensex", "market", "index")

MARKET_KEYWORDS = (
    "nifty", "sensex", "bse", "nse", "market", "stock", "share", "equity",
    "trading", "investor", "investment", "portfolio", "mutual fund",
    "ipo", "listing", "earnings", "quarterly", "results", "profit",
    "revenue", "dividend", "bonus", "split", "merger", "acquisition",
    "bank", "financial", "sector", "industry", "corporate",
)

INDIAN_MARKET_KEYWORDS = (
    "india", "indian", "mumbai", "delhi", "bangalore", "hyderabad",
    "rupee", "inr", "rbi", "sebi", "modi", "budget", "gst",
    "reliance", "tata", "adani", "ambani", "infosys", "wipro",
    "hdfc", "icici", "sbi", "axis", "kotak", "bharti", "airtel",
    "coal india", "ongc", "ntpc", "power grid", "oil india",
    "larsen", "toubro", "mahindra", "maruti", "hero motocorp",
)

BUSINESS_KEYWORDS = (
    "merger", "acquisition", "joint venture", "partnership", "collaboration",
    "investment", "funding", "startup", "ceo", "founder", "launch",
    "product", "service", "technology", "innovation", "research",
    "development", "patent", "trademark", "copyright", "licensing",
    "regulation", "compliance", "audit", "financial", "report",
    "statement", "forecast", "guidance", "risk", "challenge", "opportunity",
)

IRRELEVANT_KEYWORDS = (
    "sports", "entertainment", "celebrity", "gossip", "reality show",
    "movie", "film", "music", "concert", "theater", "art",
    "fashion", "beauty", "lifestyle", "food", "recipe",
    "travel", "vacation", "holiday", "leisure", "hobby",
    "pets", "animal", "nature", "environment", "weather",
    "science", "health", "fitness", "wellness", "meditation",
    "yoga", "spirituality", "philosophy", "religion", "mythology",
)

FINANCIAL_WORDS_RE = re.compile(
    r"\b(money|finance|business|company|corporate|industry|sector|economic|growth"
    r"|profit|revenue|earnings|investment|trade|commercial)\b",
    re.IGNORECASE,
)

# Below this many fetched items, otherwise-irrelevant items may pass on financial words
LENIENT_BELOW = 15
# Below this many relevant items, the feed is topped up to TOP_UP_TO
MIN_RELEVANT = 10
TOP_UP_TO = 15


def _text(headline: str, summary: str) -> str:
    return f"{headline} {summary}".lower()


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize(headline: str, summary: str) -> str:
    """First matching bucket wins: policy, economy, market, else company."""
    text = _text(headline, summary)
    if _contains_any(text, POLICY_KEYWORDS):
        return "policy"
    if _contains_any(text, ECONOMY_KEYWORDS):
        return "economy"
    if _contains_any(text, MARKET_CATEGORY_KEYWORDS):
        return "market"
    return "company"


def is_market_relevant(headline: str, summary: str) -> bool:
    return _contains_any(_text(headline, summary), MARKET_KEYWORDS)


def is_indian_market_relevant(headline: str, summary: str) -> bool:
    return _contains_any(_text(headline, summary), INDIAN_MARKET_KEYWORDS)


def is_business_relevant(headline: str, summary: str) -> bool:
    return _contains_any(_text(headline, summary), BUSINESS_KEYWORDS)


def is_completely_irrelevant(headline: str, summary: str) -> bool:
    return _contains_any(_text(headline, summary), IRRELEVANT_KEYWORDS)


def has_financial_words(headline: str, summary: str) -> bool:
    return bool(FINANCIAL_WORDS_RE.search(f"{headline} {summary}"))


def is_relevant(item: NewsItem) -> bool:
    return (
        bool(item.relevant_stocks)
        or is_market_relevant(item.headline, item.summary)
        or is_indian_market_relevant(item.headline, item.summary)
        or is_business_relevant(item.headline, item.summary)
    )


def select_relevant(items: list[NewsItem]) -> list[NewsItem]:
    """
    Keep market-relevant items, loosening the rules when the feed is thin.

    With fewer than ``LENIENT_BELOW`` items in total, an item that fails the
    keyword checks still passes if it mentions a financial word. If fewer than
    ``MIN_RELEVANT`` items survive, the result is topped up to ``TOP_UP_TO``
    with leftovers that are not clearly off-topic.
    """
    lenient = len(items) < LENIENT_BELOW
    selected = [
        item
        for item in items
        if is_relevant(item) or (lenient and has_financial_words(item.headline, item.summary))
    ]

    if len(selected) < MIN_RELEVANT:
        chosen = {id(item) for item in selected}
        extra = [
            item
            for item in items
            if id(item) not in chosen
            and not is_completely_irrelevant(item.headline, item.summary)
        ]
        selected.extend(extra[: TOP_UP_TO - len(selected)])

    return selected


def sort_recent_first(items: list[NewsItem]) -> list[NewsItem]:
    """Items from the last 24 hours first, each group newest first."""
    return sorted(items, key=lambda item: (not item.is_recent, -item.timestamp.timestamp()))


def filter_news_by_stocks(news: Iterable[NewsItem], symbols: Iterable[str]) -> list[NewsItem]:
    """
    Items tagged with one of ``symbols``, or whose headline or summary
    mentions one of them.
    """
    wanted = [s.strip().upper() for s in symbols if s and s.strip()]
    if not wanted:
        return []

    matches = []
    for item in news:
        tagged = {stock.upper() for stock in item.relevant_stocks}
        text = f"{item.headline}\n{item.summary}".upper()
        if any(symbol in tagged or symbol in text for symbol in wanted):
            matches.append(item)
    return matches
