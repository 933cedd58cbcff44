"""Pydantic schemas for API request/response validation."""

from .auth import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    SignupRequest,
    UserResponse,
)
from .common import (
    ErrorResponse,
    HealthResponse,
    MessageResponse,
)
from .insights import (
    AIInsight,
    InsightsResponse,
    InvestmentSuggestion,
    InvestmentSuggestions,
    MarketSentiment,
    NewsImpactPrediction,
    NewsImpactRequest,
    PortfolioRisk,
    SuggestionsRequest,
)
from .market import Quote, StockSearchResponse
from .news import NewsCacheStatus, NewsItem, NewsResponse
from .portfolio import (
    EnrichedHolding,
    HoldingInput,
    HoldingMutationResponse,
    HoldingResponse,
    HoldingUpdate,
    PortfolioResponse,
    PortfolioSummary,
)


__all__ = [
    "AIInsight",
    "AuthResponse",
    "EnrichedHolding",
    "ErrorResponse",
    "HealthResponse",
    "HoldingInput",
    "HoldingMutationResponse",
    "HoldingResponse",
    "HoldingUpdate",
    "InsightsResponse",
    "InvestmentSuggestion",
    "InvestmentSuggestions",
    "LoginRequest",
    "MarketSentiment",
    "MessageResponse",
    "NewsCacheStatus",
    "NewsImpactPrediction",
    "NewsImpactRequest",
    "NewsItem",
    "NewsResponse",
    "PortfolioResponse",
    "PortfolioRisk",
    "PortfolioSummary",
    "ProfileResponse",
    "Quote",
    "SignupRequest",
    "StockSearchResponse",
    "SuggestionsRequest",
    "UserResponse",
]
