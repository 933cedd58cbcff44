"""AI insight routes.

Every endpoint answers even when the model is unavailable; the service
layer substitutes keyword-based results.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import rate_limit_api, require_user
from app.core.security import TokenData
from app.repositories import holdings_orm as holdings_repo
from app.schemas.insights import (
    InsightsResponse,
    InvestmentSuggestions,
    MarketSentiment,
    NewsImpactPrediction,
    NewsImpactRequest,
    PortfolioRisk,
    SuggestionsRequest,
)
from app.services import insights as insights_service
from app.services.news import fetch_news
from app.services.portfolio import enrich_holdings, holdings_for_analysis


router = APIRouter(dependencies=[Depends(rate_limit_api)])


async def _analysis_holdings(user_id: int) -> list[dict]:
    holdings = await holdings_repo.list_holdings(user_id)
    return holdings_for_analysis(await enrich_holdings(holdings))


@router.get(
    "/portfolio",
    response_model=InsightsResponse,
    summary="News impact on my holdings",
    description="One insight per held symbol, based on the current news feed.",
)
async def portfolio_insights(user: TokenData = Depends(require_user)) -> InsightsResponse:
    holdings = await holdings_repo.list_holdings(user.user_id)
    news = await fetch_news()
    insights = await insights_service.analyze_news_impact(news, [h["symbol"] for h in holdings])
    return InsightsResponse(insights=insights, news_count=len(news))


@router.get(
    "/market-sentiment",
    response_model=MarketSentiment,
    summary="Overall market sentiment",
)
async def market_sentiment() -> MarketSentiment:
    return await insights_service.analyze_market_sentiment(await fetch_news())


@router.get(
    "/risk",
    response_model=PortfolioRisk,
    summary="Portfolio risk assessment",
)
async def portfolio_risk(user: TokenData = Depends(require_user)) -> PortfolioRisk:
    return await insights_service.analyze_portfolio_risk(await _analysis_holdings(user.user_id))


@router.post(
    "/suggestions",
    response_model=InvestmentSuggestions,
    summary="Investment suggestions",
    description="Buy/sell/hold suggestions for the caller's holdings given current market sentiment.",
)
async def suggestions(
    payload: SuggestionsRequest | None = None,
    user: TokenData = Depends(require_user),
) -> InvestmentSuggestions:
    payload = payload or SuggestionsRequest()
    holdings = await _analysis_holdings(user.user_id)
    sentiment = await insights_service.analyze_market_sentiment(await fetch_news())
    return await insights_service.generate_investment_suggestions(
        holdings, sentiment, payload.risk_profile
    )


@router.post(
    "/news-impact",
    response_model=NewsImpactPrediction,
    summary="Predict the market impact of a news item",
)
async def news_impact(payload: NewsImpactRequest) -> NewsImpactPrediction:
    return await insights_service.predict_news_impact(payload.news_item, payload.affected_stocks)
