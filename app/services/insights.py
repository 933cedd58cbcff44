"""
AI insights over news and holdings.

Each analysis asks the model for a JSON object and maps it onto a schema,
filling documented defaults for anything missing. When the model is not
configured, fails, or replies with something unparseable, a local keyword
heuristic produces the answer instead, so none of these functions raise for
provider trouble.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional, Sequence

from app.core.logging import get_logger
from app.schemas.insights import (
    AIInsight,
    InvestmentSuggestion,
    InvestmentSuggestions,
    MarketSentiment,
    NewsImpactPrediction,
    PortfolioRisk,
)
from app.schemas.news import NewsItem
from app.services.news.filters import filter_news_by_stocks
from app.services.openai import TaskType, generate_json, get_settings
from app.services.openai import prompts
from app.services.openai.validation import clamp_unit, pick_choice, string_list

logger = get_logger("services.insights")

POSITIVE_KEYWORDS = (
    "profit", "growth", "wins", "surge", "high", "strong",
    "robust", "improves", "beats", "exceeds",
)
NEGATIVE_KEYWORDS = (
    "loss", "decline", "falls", "weak", "concern", "issue",
    "problem", "drops", "misses",
)
BULLISH_HEADLINE_WORDS = ("high", "surge", "growth")
BEARISH_HEADLINE_WORDS = ("fall", "decline", "concern")

SENTIMENTS = ("positive", "negative", "neutral")
IMPACTS = ("high", "medium", "low")
MOODS = ("bullish", "bearish", "neutral")
RISK_LEVELS = ("low", "medium", "high")
ACTIONS = ("buy", "sell", "hold")
TIMEFRAMES = ("immediate", "days", "weeks", "months")

MARKET_NEWS_LIMIT = 10
MARKET_NEWS_CATEGORIES = ("market", "policy", "economy")

RECOMMENDATIONS = {
    "positive": "Consider maintaining or increasing position.",
    "negative": "Monitor closely and consider risk management.",
    "neutral": "Hold current position and await further developments.",
}


# =============================================================================
# Keyword fallbacks
# =============================================================================


def no_news_insight(symbol: str) -> AIInsight:
    return AIInsight(
        stock=symbol,
        sentiment="neutral",
        impact="low",
        confidence=0.3,
        reasoning="No specific news found for this stock in recent updates.",
        recommendation="Monitor for upcoming developments and earnings reports.",
    )


def keyword_score(news: Iterable[NewsItem]) -> int:
    """+1 per positive keyword and -1 per negative keyword present in each item."""
    score = 0
    for item in news:
        text = f"{item.headline} {item.summary}".lower()
        score += sum(1 for keyword in POSITIVE_KEYWORDS if keyword in text)
        score -= sum(1 for keyword in NEGATIVE_KEYWORDS if keyword in text)
    return score


def keyword_insight(symbol: str, news: Sequence[NewsItem]) -> AIInsight:
    score = keyword_score(news)
    if score > 0:
        sentiment = "positive"
    elif score < 0:
        sentiment = "negative"
    else:
        sentiment = "neutral"

    magnitude = abs(score)
    if magnitude >= 2:
        impact = "high"
    elif magnitude >= 1:
        impact = "medium"
    else:
        impact = "low"

    return AIInsight(
        stock=symbol,
        sentiment=sentiment,
        impact=impact,
        confidence=min(0.7, 0.4 + 0.1 * magnitude),
        reasoning=(
            f"Based on keyword analysis of {len(news)} news items. "
            f"{sentiment} sentiment detected."
        ),
        recommendation=RECOMMENDATIONS[sentiment],
    )


def keyword_market_sentiment(news: Iterable[NewsItem]) -> MarketSentiment:
    headlines = [
        item.headline.lower() for item in news if item.category in ("market", "policy")
    ]
    positive = sum(1 for h in headlines if any(w in h for w in BULLISH_HEADLINE_WORDS))
    negative = sum(1 for h in headlines if any(w in h for w in BEARISH_HEADLINE_WORDS))

    if positive > negative:
        overall = "bullish"
    elif negative > positive:
        overall = "bearish"
    else:
        overall = "neutral"

    return MarketSentiment(
        overall=overall,
        confidence=0.6,
        summary=f"Market sentiment appears {overall} based on recent news analysis using fallback method.",
        key_factors=[
            "News sentiment analysis",
            "Market performance indicators",
            "Policy developments",
            "Economic trends",
        ],
    )


def fallback_portfolio_risk(holdings_count: int) -> PortfolioRisk:
    if holdings_count < 3:
        level = "high"
    elif holdings_count < 7:
        level = "medium"
    else:
        level = "low"
    return PortfolioRisk(
        risk_level=level,
        diversification_score=min(holdings_count / 10, 1.0),
        recommendations=[
            "Consider adding more diverse stocks",
            "Monitor market conditions",
            "Review portfolio allocation",
        ],
        risk_factors=[
            "Limited diversification",
            "Market volatility",
            "Sector concentration",
        ],
    )


def fallback_suggestions() -> InvestmentSuggestions:
    return InvestmentSuggestions(
        suggestions=[
            InvestmentSuggestion(
                action="hold",
                symbol="PORTFOLIO",
                reasoning="Maintain current positions while monitoring market conditions",
                confidence=0.6,
            )
        ],
        portfolio_optimizations=[
            "Consider diversifying across sectors",
            "Monitor market sentiment changes",
            "Review position sizes",
        ],
    )


def fallback_news_prediction() -> NewsImpactPrediction:
    return NewsImpactPrediction(
        short_term_impact="neutral",
        long_term_impact="neutral",
        timeframe="days",
        impact_magnitude=0.3,
        affected_sectors=["General Market"],
    )


# =============================================================================
# Model-backed analyses
# =============================================================================


async def _insight_for(symbol: str, news: Sequence[NewsItem]) -> AIInsight:
    result = await generate_json(TaskType.NEWS_IMPACT, prompts.news_impact_prompt(symbol, news))
    if result is None:
        return keyword_insight(symbol, news)
    return AIInsight(
        stock=symbol,
        sentiment=pick_choice(result.get("sentiment"), SENTIMENTS, "neutral"),
        impact=pick_choice(result.get("impact"), IMPACTS, "low"),
        confidence=clamp_unit(result.get("confidence")),
        reasoning=str(result.get("reasoning") or "Analysis completed based on available news."),
        recommendation=str(result.get("recommendation") or "Monitor stock performance."),
    )


async def analyze_news_impact(news: Sequence[NewsItem], symbols: Iterable[str]) -> list[AIInsight]:
    """One insight per symbol, in the order given."""
    delay = get_settings().inter_request_delay
    insights: list[AIInsight] = []
    called_model = False

    for symbol in symbols:
        relevant = filter_news_by_stocks(news, [symbol])
        if not relevant:
            insights.append(no_news_insight(symbol))
            continue

        # Space out consecutive model calls
        if called_model and delay > 0:
            await asyncio.sleep(delay)
        insights.append(await _insight_for(symbol, relevant))
        called_model = True

    return insights


async def analyze_market_sentiment(news: Sequence[NewsItem]) -> MarketSentiment:
    market_news = [item for item in news if item.category in MARKET_NEWS_CATEGORIES][
        :MARKET_NEWS_LIMIT
    ]
    if not market_news:
        return MarketSentiment(
            overall="neutral",
            confidence=0.3,
            summary="Insufficient market news for sentiment analysis.",
            key_factors=["Limited news data available"],
        )

    result = await generate_json(
        TaskType.MARKET_SENTIMENT, prompts.market_sentiment_prompt(market_news)
    )
    if result is None:
        logger.info("Market sentiment falling back to keyword analysis")
        return keyword_market_sentiment(news)

    return MarketSentiment(
        overall=pick_choice(result.get("overall"), MOODS, "neutral"),
        confidence=clamp_unit(result.get("confidence")),
        summary=str(result.get("summary") or "Market sentiment analysis completed."),
        key_factors=string_list(result.get("keyFactors"))
        or ["Market analysis", "Economic factors", "Policy developments", "Global trends"],
    )


async def analyze_portfolio_risk(holdings: Sequence[dict[str, Any]]) -> PortfolioRisk:
    """Risk view over enriched holdings (symbol, price, change, quantity)."""
    result = await generate_json(
        TaskType.PORTFOLIO_RISK, prompts.portfolio_risk_prompt(holdings)
    )
    if result is None:
        return fallback_portfolio_risk(len(holdings))

    return PortfolioRisk(
        risk_level=pick_choice(result.get("riskLevel"), RISK_LEVELS, "medium"),
        diversification_score=clamp_unit(result.get("diversificationScore")),
        recommendations=string_list(result.get("recommendations"))
        or ["Monitor portfolio regularly", "Consider diversification", "Review risk tolerance"],
        risk_factors=string_list(result.get("riskFactors"))
        or ["Market volatility", "Sector concentration", "Economic factors"],
    )


def _parse_suggestions(raw: Any) -> list[InvestmentSuggestion]:
    suggestions = []
    for entry in raw if isinstance(raw, list) else []:
        if not isinstance(entry, dict):
            continue
        symbol = str(entry.get("symbol") or "").strip().upper()
        if not symbol:
            continue
        suggestions.append(
            InvestmentSuggestion(
                action=pick_choice(entry.get("action"), ACTIONS, "hold"),
                symbol=symbol,
                reasoning=str(entry.get("reasoning") or ""),
                confidence=clamp_unit(entry.get("confidence")),
            )
        )
    return suggestions


async def generate_investment_suggestions(
    holdings: Sequence[dict[str, Any]],
    sentiment: MarketSentiment,
    risk_profile: str = "moderate",
) -> InvestmentSuggestions:
    prompt = prompts.suggestions_prompt(
        holdings,
        sentiment.overall,
        sentiment.confidence,
        sentiment.key_factors,
        risk_profile,
    )
    result = await generate_json(TaskType.SUGGESTIONS, prompt)
    if result is None:
        return fallback_suggestions()

    return InvestmentSuggestions(
        suggestions=_parse_suggestions(result.get("suggestions")),
        portfolio_optimizations=string_list(result.get("portfolioOptimizations"))
        or [
            "Consider rebalancing portfolio",
            "Review sector allocation",
            "Monitor risk exposure",
        ],
    )


async def predict_news_impact(
    item: NewsItem, affected: Optional[Sequence[str]] = None
) -> NewsImpactPrediction:
    affected = list(affected or item.relevant_stocks)
    result = await generate_json(
        TaskType.NEWS_PREDICTION, prompts.news_prediction_prompt(item, affected)
    )
    if result is None:
        return fallback_news_prediction()

    return NewsImpactPrediction(
        short_term_impact=pick_choice(result.get("shortTermImpact"), SENTIMENTS, "neutral"),
        long_term_impact=pick_choice(result.get("longTermImpact"), SENTIMENTS, "neutral"),
        timeframe=pick_choice(result.get("timeframe"), TIMEFRAMES, "days"),
        impact_magnitude=clamp_unit(result.get("impactMagnitude")),
        affected_sectors=string_list(result.get("affectedSectors")) or ["General Market"],
    )
