"""Portfolio valuation: holdings joined with current quotes."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Sequence

from app.core.logging import get_logger
from app.schemas.market import Quote
from app.schemas.portfolio import EnrichedHolding, PortfolioSummary
from app.services import market_data

logger = get_logger("services.portfolio")


def _enrich(holding: dict[str, Any], quote: Quote | None) -> EnrichedHolding:
    purchase_price = holding.get("purchase_price")
    if quote is None:
        name = holding["symbol"]
        price = float(purchase_price) if purchase_price is not None else 0.0
        change = 0.0
        change_percent = 0.0
    else:
        name, price, change, change_percent = (
            quote.name,
            quote.price,
            quote.change,
            quote.change_percent,
        )

    return EnrichedHolding(
        **{**holding, "purchase_price": float(purchase_price) if purchase_price is not None else None},
        name=name,
        price=price,
        change=change,
        change_percent=change_percent,
        market_value=round(price * holding["quantity"], 2),
    )


async def enrich_holdings(holdings: Sequence[dict[str, Any]]) -> list[EnrichedHolding]:
    """
    Attach name, price and daily change to each holding.

    Quotes are fetched concurrently. A holding whose quote lookup fails is
    valued at its purchase price (or 0) with no change.
    """
    if not holdings:
        return []

    results = await asyncio.gather(
        *(market_data.get_quote(h["symbol"]) for h in holdings),
        return_exceptions=True,
    )

    enriched = []
    for holding, result in zip(holdings, results):
        if isinstance(result, Exception):
            logger.warning(f"Quote lookup failed for {holding['symbol']}: {result}")
            result = None
        enriched.append(_enrich(holding, result))
    return enriched


def calculate_summary(holdings: Iterable[EnrichedHolding]) -> PortfolioSummary:
    """
    Totals over enriched holdings.

    ``total_change_percent`` is the day's change relative to the previous
    close value, ``total_change / (total_value - total_change) * 100``, and 0
    when that base is zero.
    """
    items = list(holdings)
    total_value = sum(h.price * h.quantity for h in items)
    total_change = sum(h.change * h.quantity for h in items)
    total_cost = sum((h.purchase_price or 0.0) * h.quantity for h in items)

    previous_value = total_value - total_change
    if total_value > 0 and previous_value != 0:
        total_change_percent = total_change / previous_value * 100
    else:
        total_change_percent = 0.0

    return PortfolioSummary(
        total_value=round(total_value, 2),
        total_change=round(total_change, 2),
        total_change_percent=round(total_change_percent, 2),
        total_cost=round(total_cost, 2),
        unrealized_gain=round(total_value - total_cost, 2),
        holdings_count=len(items),
    )


def holdings_for_analysis(holdings: Iterable[EnrichedHolding]) -> list[dict[str, Any]]:
    """Plain dicts in the shape the insight prompts expect."""
    return [
        {
            "symbol": h.symbol,
            "price": h.price,
            "change": h.change,
            "change_percent": h.change_percent,
            "quantity": h.quantity,
        }
        for h in holdings
    ]
