"""News routes: market feed, portfolio-filtered feed and symbol queries."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import rate_limit_api, require_user
from app.core.security import TokenData
from app.repositories import holdings_orm as holdings_repo
from app.schemas.news import NewsCacheStatus, NewsResponse
from app.services import news as news_service


router = APIRouter(dependencies=[Depends(rate_limit_api)])


def parse_symbols(raw: str | None) -> list[str]:
    """``"tcs, INFY,,"`` -> ``["TCS", "INFY"]``."""
    if not raw:
        return []
    return list(dict.fromkeys(s.strip().upper() for s in raw.split(",") if s.strip()))


def _response(items) -> NewsResponse:
    return NewsResponse(news=items, count=len(items))


@router.get(
    "",
    response_model=NewsResponse,
    summary="Market news",
    description=(
        "Recent Indian market news, recent items first. "
        "Pass symbols=A,B to keep only items about those stocks."
    ),
)
async def get_news(
    symbols: Annotated[str | None, Query(description="Comma separated symbols")] = None,
) -> NewsResponse:
    items = await news_service.fetch_news()
    wanted = parse_symbols(symbols)
    if wanted:
        items = news_service.filter_news_by_stocks(items, wanted)
    return _response(items)


@router.get(
    "/portfolio",
    response_model=NewsResponse,
    summary="News for my holdings",
)
async def get_portfolio_news(user: TokenData = Depends(require_user)) -> NewsResponse:
    holdings = await holdings_repo.list_holdings(user.user_id)
    if not holdings:
        return _response([])
    items = await news_service.fetch_news()
    return _response(news_service.filter_news_by_stocks(items, [h["symbol"] for h in holdings]))


@router.get(
    "/stocks",
    response_model=NewsResponse,
    summary="News tagged with specific stocks",
    description="Queries the provider directly for NSE/BSE listings of the given symbols.",
)
async def get_stock_news(
    symbols: Annotated[str, Query(min_length=1, description="Comma separated symbols")],
) -> NewsResponse:
    return _response(await news_service.fetch_stock_specific_news(parse_symbols(symbols)))


@router.get(
    "/cache",
    response_model=NewsCacheStatus,
    summary="News cache status",
)
async def get_cache_status() -> NewsCacheStatus:
    return NewsCacheStatus(
        active=await news_service.is_cache_active(),
        ttl_seconds=await news_service.cache_ttl_remaining(),
    )
