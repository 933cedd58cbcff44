"""Market data routes: quotes and symbol search."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from app.api.dependencies import rate_limit_api
from app.schemas.market import Quote, StockSearchResponse
from app.services import market_data


router = APIRouter(dependencies=[Depends(rate_limit_api)])


@router.get(
    "/quote/{symbol}",
    response_model=Quote,
    summary="Latest quote",
    description=(
        "Price and daily change for a symbol, resolved on NSE then BSE. "
        "When the provider is unavailable a generated quote with source=fallback is returned."
    ),
)
async def get_quote(
    symbol: Annotated[str, Path(min_length=1, max_length=20)],
) -> Quote:
    return await market_data.get_quote(symbol)


@router.get(
    "/search",
    response_model=StockSearchResponse,
    summary="Search Indian listings",
    description="Up to ten NSE/BSE symbols matching the query.",
)
async def search(
    q: Annotated[str, Query(min_length=1, max_length=100, description="Company name or symbol")],
) -> StockSearchResponse:
    return StockSearchResponse(query=q, symbols=await market_data.search_stocks(q))
