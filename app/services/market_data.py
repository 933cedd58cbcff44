"""
Market quotes from Alpha Vantage with a local fallback.

Indian listings are looked up as ``SYMBOL.NSE``, then ``SYMBOL.BSE``, then the
bare symbol. A reply is skipped when Alpha Vantage signals throttling
(``Note``), an error, or returns an empty or zero-priced quote. When nothing
usable comes back, or no API key is configured, a fallback quote is generated
so callers always get a price.

Usage:
    from app.services.market_data import get_quote

    quote = await get_quote("TCS")
"""

from __future__ import annotations

import random
from typing import Any, Optional

import httpx

from app.cache.cache import Cache
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.market import Quote

logger = get_logger("services.market_data")

EXCHANGE_SUFFIXES = (".NSE", ".BSE")
SEARCH_LIMIT = 10

# Base values for well-known NSE listings: (name, price, change, change_percent)
FALLBACK_QUOTES: dict[str, tuple[str, float, float, float]] = {
    "RELIANCE": ("Reliance Industries Ltd", 2890.15, 34.85, 1.22),
    "TCS": ("Tata Consultancy Services", 4156.30, -18.45, -0.44),
    "HDFCBANK": ("HDFC Bank Ltd", 1721.90, 12.25, 0.72),
    "INFY": ("Infosys Ltd", 1834.25, -5.75, -0.31),
    "ICICIBANK": ("ICICI Bank Ltd", 1267.80, 23.60, 1.90),
    "WIPRO": ("Wipro Ltd", 567.45, -3.20, -0.56),
    "ADANIGREEN": ("Adani Green Energy Ltd", 1456.50, 87.25, 6.37),
    "BHARTIARTL": ("Bharti Airtel Ltd", 1534.70, 15.30, 1.01),
    "SBIN": ("State Bank of India", 823.45, 8.75, 1.07),
    "LT": ("Larsen & Toubro Ltd", 3678.90, -21.15, -0.57),
}

_quote_cache = Cache(prefix="quote", default_ttl=settings.quote_cache_ttl)


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=float(settings.external_api_timeout))


def _candidate_symbols(symbol: str) -> list[str]:
    """Lookup order for ``symbol`` (already upper-cased)."""
    if "." in symbol or ":" in symbol:
        bare = symbol.split(".")[0].split(":")[-1]
        return [symbol] if bare == symbol else [symbol, bare]
    return [f"{symbol}{suffix}" for suffix in EXCHANGE_SUFFIXES] + [symbol]


def _bare_symbol(symbol: str) -> str:
    for suffix in EXCHANGE_SUFFIXES:
        if symbol.endswith(suffix):
            return symbol[: -len(suffix)]
    return symbol


def _to_float(value: Any) -> float:
    try:
        return float(str(value).replace("%", "").strip())
    except (TypeError, ValueError):
        return 0.0


def fallback_quote(symbol: str, rng: Optional[random.Random] = None) -> Quote:
    """
    Generate a plausible quote without calling out.

    Known symbols get their base values with up to ±1% price noise; any other
    symbol gets a random price in [500, 3500) and change in [-3%, 3%).
    """
    rng = rng or random
    symbol = symbol.strip().upper()
    base = FALLBACK_QUOTES.get(symbol)

    if base:
        name, price, change, change_percent = base
        variation = (rng.random() - 0.5) * 0.02
        return Quote(
            symbol=symbol,
            name=name,
            price=round(price * (1 + variation), 2),
            change=round(change * (1 + variation), 2),
            change_percent=round(change_percent * (1 + variation), 2),
            source="fallback",
        )

    base_price = 500 + rng.random() * 3000
    change_percent = (rng.random() - 0.5) * 6
    change = base_price * change_percent / 100
    return Quote(
        symbol=symbol,
        name=f"{symbol[:1]}{symbol[1:].lower()} Ltd",
        price=round(base_price, 2),
        change=round(change, 2),
        change_percent=round(change_percent, 2),
        source="fallback",
    )


async def _fetch_global_quote(
    client: httpx.AsyncClient,
    candidate: str,
    api_key: str,
) -> Optional[dict[str, Any]]:
    """Return the ``Global Quote`` block for ``candidate`` or None if unusable."""
    try:
        response = await client.get(
            settings.alpha_vantage_base_url,
            params={"function": "GLOBAL_QUOTE", "symbol": candidate, "apikey": api_key},
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Quote request failed for {candidate}: {e}")
        return None

    if not isinstance(data, dict) or not data:
        logger.debug(f"Empty quote reply for {candidate}")
        return None
    if "Note" in data or "Information" in data:
        logger.warning(f"Alpha Vantage throttled request for {candidate}")
        return None
    if "Error Message" in data:
        logger.debug(f"Alpha Vantage rejected {candidate}")
        return None

    quote = data.get("Global Quote")
    if not isinstance(quote, dict) or not quote.get("01. symbol"):
        return None
    if _to_float(quote.get("05. price")) <= 0:
        logger.debug(f"Zero price for {candidate}")
        return None
    return quote


async def _fetch_company_name(client: httpx.AsyncClient, symbol: str, api_key: str) -> str:
    try:
        response = await client.get(
            settings.alpha_vantage_base_url,
            params={"function": "SYMBOL_SEARCH", "keywords": symbol, "apikey": api_key},
        )
        response.raise_for_status()
        matches = response.json().get("bestMatches") or []
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.debug(f"Company name lookup failed for {symbol}: {e}")
        return symbol

    if isinstance(matches, list) and matches and isinstance(matches[0], dict):
        name = matches[0].get("2. name")
        if isinstance(name, str) and name:
            return name
    return symbol


async def fetch_live_quote(symbol: str, client: Optional[httpx.AsyncClient] = None) -> Optional[Quote]:
    """Try every exchange candidate; None when no usable quote was found."""
    api_key = settings.alpha_vantage_api_key
    if not api_key:
        return None

    owns_client = client is None
    client = client or _build_client()
    try:
        for candidate in _candidate_symbols(symbol):
            quote = await _fetch_global_quote(client, candidate, api_key)
            if quote is None:
                continue
            name = await _fetch_company_name(client, _bare_symbol(symbol), api_key)
            logger.debug(f"Live quote for {symbol} via {candidate}")
            return Quote(
                symbol=symbol,
                name=name,
                price=_to_float(quote.get("05. price")),
                change=_to_float(quote.get("09. change")),
                change_percent=_to_float(quote.get("10. change percent")),
                source="live",
            )
    finally:
        if owns_client:
            await client.aclose()
    return None


async def get_quote(symbol: str) -> Quote:
    """Latest quote for ``symbol``; live quotes are cached, fallbacks are not."""
    symbol = symbol.strip().upper()

    cached = await _quote_cache.get(symbol)
    if cached is not None:
        return Quote.model_validate(cached)

    quote = await fetch_live_quote(symbol)
    if quote is None:
        logger.info(f"Using fallback quote for {symbol}")
        return fallback_quote(symbol)

    await _quote_cache.set(symbol, quote.model_dump())
    return quote


async def search_stocks(query: str) -> list[str]:
    """
    Up to ten Indian listings matching ``query``, as bare symbols.

    Returns an empty list on any provider error or without an API key.
    """
    api_key = settings.alpha_vantage_api_key
    if not api_key or not query.strip():
        return []

    try:
        async with _build_client() as client:
            response = await client.get(
                settings.alpha_vantage_base_url,
                params={"function": "SYMBOL_SEARCH", "keywords": query.strip(), "apikey": api_key},
            )
            response.raise_for_status()
            matches = response.json().get("bestMatches") or []
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.warning(f"Symbol search failed: {e}")
        return []

    if not isinstance(matches, list):
        return []

    symbols: list[str] = []
    for match in matches:
        if not isinstance(match, dict):
            continue
        raw = match.get("1. symbol")
        if not isinstance(raw, str) or not raw:
            continue
        if match.get("4. region") == "India" or raw.endswith(EXCHANGE_SUFFIXES):
            symbols.append(raw.split(".")[0])
    return symbols[:SEARCH_LIMIT]


async def clear_quote_cache() -> int:
    return await _quote_cache.clear()
