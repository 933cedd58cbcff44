"""
Chat-completion client configuration.

The analysis endpoints talk to any OpenAI-compatible API; the defaults point
at OpenRouter. Each analysis task has its own sampling settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class TaskType(str, Enum):
    """Supported analysis tasks."""
    NEWS_IMPACT = "news_impact"            # Per-holding news sentiment
    MARKET_SENTIMENT = "market_sentiment"  # Overall market mood
    PORTFOLIO_RISK = "portfolio_risk"      # Concentration and risk factors
    SUGGESTIONS = "suggestions"            # Buy/sell/hold ideas
    NEWS_PREDICTION = "news_prediction"    # Impact forecast for one article


@dataclass(frozen=True)
class TaskConfig:
    temperature: float = 0.3
    max_tokens: int = 500


TASK_CONFIGS: dict[TaskType, TaskConfig] = {
    TaskType.NEWS_IMPACT: TaskConfig(temperature=0.3, max_tokens=500),
    TaskType.MARKET_SENTIMENT: TaskConfig(temperature=0.3, max_tokens=400),
    TaskType.PORTFOLIO_RISK: TaskConfig(temperature=0.2, max_tokens=600),
    TaskType.SUGGESTIONS: TaskConfig(temperature=0.4, max_tokens=800),
    TaskType.NEWS_PREDICTION: TaskConfig(temperature=0.3, max_tokens=500),
}


class OpenAISettings(BaseSettings):
    """Model client configuration from environment variables."""

    api_key: str = Field(
        default="",
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "OPENAI_API_KEY"),
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("OPENROUTER_BASE_URL", "OPENAI_BASE_URL"),
    )
    default_model: str = Field(
        default="google/gemma-2-9b-it:free",
        validation_alias=AliasChoices("AI_MODEL", "OPENAI_MODEL"),
    )

    # Sent as OpenRouter attribution headers
    site_url: str = Field(default="http://localhost:5173", alias="SITE_URL")
    site_name: str = Field(default="StockSense", alias="SITE_NAME")

    # Retry configuration
    max_retries: int = Field(default=3, alias="OPENAI_MAX_RETRIES")
    retry_delay: float = Field(default=1.0, alias="OPENAI_RETRY_DELAY")
    retry_max_delay: float = Field(default=30.0, alias="OPENAI_RETRY_MAX_DELAY")
    request_timeout: float = Field(default=60.0, alias="OPENAI_TIMEOUT")

    # Circuit breaker configuration
    circuit_breaker_threshold: int = Field(default=5, alias="OPENAI_CB_THRESHOLD")
    circuit_breaker_timeout: int = Field(default=60, alias="OPENAI_CB_TIMEOUT")

    # Connection configuration
    client_ttl_hours: int = Field(default=1, alias="OPENAI_CLIENT_TTL_HOURS")
    max_connections: int = Field(default=20, alias="OPENAI_MAX_CONNECTIONS")

    # Pause between per-holding calls (free tiers throttle hard)
    inter_request_delay: float = Field(default=1.0, alias="AI_REQUEST_DELAY")

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}

    @property
    def client_ttl(self) -> timedelta:
        return timedelta(hours=self.client_ttl_hours)


@lru_cache(maxsize=1)
def get_settings() -> OpenAISettings:
    """Get cached model client settings instance."""
    return OpenAISettings()


def get_task_config(task: TaskType) -> TaskConfig:
    return TASK_CONFIGS.get(task, TaskConfig())
