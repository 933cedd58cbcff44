"""AI insight schemas.

Numbers the model reports as confidences or scores are clamped to [0, 1]
on the way in, whatever the model returned.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .news import NewsItem


Sentiment = Literal["positive", "negative", "neutral"]
Impact = Literal["high", "medium", "low"]
MarketMood = Literal["bullish", "bearish", "neutral"]
RiskLevel = Literal["low", "medium", "high"]
RiskProfile = Literal["conservative", "moderate", "aggressive"]


def _clamp_unit(v) -> float:
    try:
        value = float(v)
    except (TypeError, ValueError):
        return 0.5
    return max(0.0, min(1.0, value))


class AIInsight(BaseModel):
    """News-driven view on one holding."""

    stock: str
    sentiment: Sentiment = "neutral"
    impact: Impact = "low"
    confidence: float = 0.5
    reasoning: str = ""
    recommendation: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return _clamp_unit(v)


class MarketSentiment(BaseModel):
    overall: MarketMood = "neutral"
    confidence: float = 0.5
    summary: str = ""
    key_factors: list[str] = Field(default_factory=list)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return _clamp_unit(v)


class PortfolioRisk(BaseModel):
    risk_level: RiskLevel = "medium"
    diversification_score: float = 0.5
    recommendations: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)

    @field_validator("diversification_score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_unit(v)


class InvestmentSuggestion(BaseModel):
    action: Literal["buy", "sell", "hold"] = "hold"
    symbol: str
    reasoning: str = ""
    confidence: float = 0.5

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return _clamp_unit(v)


class InvestmentSuggestions(BaseModel):
    suggestions: list[InvestmentSuggestion] = Field(default_factory=list)
    portfolio_optimizations: list[str] = Field(default_factory=list)


class NewsImpactPrediction(BaseModel):
    short_term_impact: Literal["positive", "negative", "neutral"] = "neutral"
    long_term_impact: Literal["positive", "negative", "neutral"] = "neutral"
    timeframe: Literal["immediate", "days", "weeks", "months"] = "days"
    impact_magnitude: float = 0.3
    affected_sectors: list[str] = Field(default_factory=list)

    @field_validator("impact_magnitude", mode="before")
    @classmethod
    def clamp_magnitude(cls, v):
        return _clamp_unit(v)


class SuggestionsRequest(BaseModel):
    risk_profile: RiskProfile = "moderate"


class NewsImpactRequest(BaseModel):
    news_item: NewsItem
    affected_stocks: list[str] = Field(default_factory=list)


class InsightsResponse(BaseModel):
    insights: list[AIInsight]
    news_count: int
