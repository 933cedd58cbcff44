"""
System prompts and prompt builders for each analysis task.

Every prompt asks for a bare JSON object; replies are still parsed
defensively because free models ignore that instruction now and then.
"""

from __future__ import annotations

from typing import Any, Iterable

from app.services.openai.config import TaskType


SYSTEM_PROMPTS: dict[TaskType, str] = {
    TaskType.NEWS_IMPACT: (
        "You are a financial analyst providing stock market insights. "
        "Always respond with valid JSON only."
    ),
    TaskType.MARKET_SENTIMENT: (
        "You are a market analyst specializing in Indian stock markets. "
        "Respond with valid JSON only."
    ),
    TaskType.PORTFOLIO_RISK: (
        "You are a risk management expert specializing in Indian equity markets. "
        "Provide detailed risk analysis in valid JSON format."
    ),
    TaskType.SUGGESTIONS: (
        "You are an investment advisor specializing in Indian stock markets. "
        "Provide actionable investment suggestions in valid JSON format."
    ),
    TaskType.NEWS_PREDICTION: (
        "You are a market impact analyst specializing in Indian financial markets. "
        "Provide detailed impact predictions in valid JSON format."
    ),
}


def news_impact_prompt(symbol: str, news: Iterable[Any]) -> str:
    context = "\n\n".join(
        f"Headline: {item.headline}\nSummary: {item.summary}\nSource: {item.source}"
        for item in news
    )
    return f"""Analyze the following news for stock {symbol} and provide investment insights:

NEWS:
{context}

Respond with a JSON object of this shape:
{{
  "sentiment": "positive|negative|neutral",
  "impact": "high|medium|low",
  "confidence": 0.0-1.0,
  "reasoning": "Brief explanation of the analysis",
  "recommendation": "Investment recommendation based on the news"
}}

Consider financial performance indicators, investor confidence, regulatory or
policy changes, competitive positioning and growth prospects."""


def market_sentiment_prompt(news: Iterable[Any]) -> str:
    context = "\n".join(f"{item.headline} - {item.summary}" for item in news)
    return f"""Analyze the overall Indian stock market sentiment based on the following recent news:

{context}

Respond with a JSON object of this shape:
{{
  "overall": "bullish|bearish|neutral",
  "confidence": 0.0-1.0,
  "summary": "Brief market sentiment summary",
  "keyFactors": ["factor1", "factor2", "factor3", "factor4"]
}}

Consider economic indicators, policy changes, global factors affecting Indian
markets and sector-specific developments."""


def portfolio_risk_prompt(holdings: Iterable[dict[str, Any]]) -> str:
    context = "\n".join(
        f"{h['symbol']}: Price ₹{h.get('price', 0)}, Change {h.get('change', 0)} "
        f"({h.get('change_percent', 0)}%), Quantity: {h.get('quantity') or 1}"
        for h in holdings
    )
    return f"""Analyze this Indian stock portfolio for risk assessment:

PORTFOLIO:
{context}

Respond with a JSON object of this shape:
{{
  "riskLevel": "low|medium|high",
  "diversificationScore": 0.0-1.0,
  "recommendations": ["recommendation1", "recommendation2", "recommendation3"],
  "riskFactors": ["factor1", "factor2", "factor3"]
}}

Consider sector diversification, concentration in single stocks, volatility,
correlation between holdings and risks specific to the Indian market."""


def suggestions_prompt(
    holdings: Iterable[dict[str, Any]],
    overall: str,
    confidence: float,
    key_factors: list[str],
    risk_profile: str,
) -> str:
    summary = ", ".join(
        f"{h['symbol']}: ₹{h.get('price', 0)} "
        f"({'+' if (h.get('change_percent') or 0) >= 0 else ''}{h.get('change_percent', 0)}%)"
        for h in holdings
    )
    return f"""Generate investment suggestions for this Indian stock portfolio:

CURRENT PORTFOLIO: {summary}
MARKET SENTIMENT: {overall} ({round(confidence * 100)}% confidence)
RISK PROFILE: {risk_profile}
KEY MARKET FACTORS: {', '.join(key_factors)}

Respond with a JSON object of this shape:
{{
  "suggestions": [
    {{
      "action": "buy|sell|hold",
      "symbol": "stock_symbol",
      "reasoning": "detailed reasoning",
      "confidence": 0.0-1.0
    }}
  ],
  "portfolioOptimizations": ["optimization1", "optimization2"]
}}

Focus on Indian market dynamics, current sentiment, portfolio balance and
risk-adjusted returns."""


def news_prediction_prompt(item: Any, affected: list[str]) -> str:
    return f"""Predict the market impact of this news on Indian stocks:

HEADLINE: {item.headline}
SUMMARY: {item.summary}
SOURCE: {item.source}
AFFECTED STOCKS: {', '.join(affected)}

Respond with a JSON object of this shape:
{{
  "shortTermImpact": "positive|negative|neutral",
  "longTermImpact": "positive|negative|neutral",
  "timeframe": "immediate|days|weeks|months",
  "impactMagnitude": 0.0-1.0,
  "affectedSectors": ["sector1", "sector2"]
}}

Consider typical market reactions in India, sector interdependencies,
regulatory implications and economic spillover effects."""
