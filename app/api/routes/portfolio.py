"""Portfolio routes: the caller's holdings, valued at current prices."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from app.api.dependencies import rate_limit_api, require_user
from app.core.exceptions import NotFoundError
from app.core.security import TokenData
from app.repositories import holdings_orm as holdings_repo
from app.schemas.common import MessageResponse
from app.schemas.portfolio import (
    HoldingInput,
    HoldingMutationResponse,
    HoldingResponse,
    HoldingUpdate,
    PortfolioResponse,
    PortfolioSummary,
)
from app.services.portfolio import calculate_summary, enrich_holdings

router = APIRouter(dependencies=[Depends(rate_limit_api)])

SymbolPath = Annotated[str, Path(min_length=1, max_length=20, description="Stock symbol, e.g. RELIANCE")]


def _not_found() -> NotFoundError:
    return NotFoundError(message="Stock not found in portfolio", error_code="HOLDING_NOT_FOUND")


@router.get(
    "",
    response_model=PortfolioResponse,
    summary="List holdings",
    description="Holdings ordered by symbol, each with current price and daily change.",
)
async def list_portfolio(user: TokenData = Depends(require_user)) -> PortfolioResponse:
    holdings = await holdings_repo.list_holdings(user.user_id)
    enriched = await enrich_holdings(holdings)
    return PortfolioResponse(portfolio=enriched, summary=calculate_summary(enriched))


@router.get(
    "/summary",
    response_model=PortfolioSummary,
    summary="Portfolio totals",
    description="Total value, daily change, cost basis and unrealized gain.",
)
async def portfolio_summary(user: TokenData = Depends(require_user)) -> PortfolioSummary:
    holdings = await holdings_repo.list_holdings(user.user_id)
    return calculate_summary(await enrich_holdings(holdings))


@router.post(
    "",
    response_model=HoldingMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add or update a holding",
    description=(
        "Creates the holding (201) or, when the symbol is already held, replaces "
        "its quantity and any optional fields supplied (200)."
    ),
)
async def add_holding(
    payload: HoldingInput,
    response: Response,
    user: TokenData = Depends(require_user),
) -> HoldingMutationResponse:
    holding, created = await holdings_repo.upsert_holding(
        user.user_id,
        payload.symbol,
        quantity=payload.quantity,
        purchase_price=payload.purchase_price,
        purchase_date=payload.purchase_date,
        notes=payload.notes,
    )
    if not created:
        response.status_code = status.HTTP_200_OK

    return HoldingMutationResponse(
        portfolio_item=HoldingResponse(**holding),
        message="Stock added to portfolio" if created else "Stock updated in portfolio",
    )


@router.put(
    "/{symbol}",
    response_model=HoldingMutationResponse,
    summary="Update a holding",
    responses={404: {"description": "Stock not found in portfolio"}},
)
async def update_holding(
    payload: HoldingUpdate,
    symbol: SymbolPath,
    user: TokenData = Depends(require_user),
) -> HoldingMutationResponse:
    fields = payload.model_dump(exclude_unset=True)
    if fields.get("quantity", 0) is None:
        del fields["quantity"]

    holding = await holdings_repo.update_holding(user.user_id, symbol, fields)
    if holding is None:
        raise _not_found()

    return HoldingMutationResponse(
        portfolio_item=HoldingResponse(**holding),
        message="Stock updated in portfolio",
    )


@router.delete(
    "/{symbol}",
    response_model=MessageResponse,
    summary="Remove a holding",
    responses={404: {"description": "Stock not found in portfolio"}},
)
async def remove_holding(
    symbol: SymbolPath,
    user: TokenData = Depends(require_user),
) -> MessageResponse:
    if not await holdings_repo.delete_holding(user.user_id, symbol):
        raise _not_found()
    return MessageResponse(message="Stock removed from portfolio")
