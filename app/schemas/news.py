"""News feed schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


NewsCategory = Literal["market", "company", "policy", "economy"]


class NewsItem(BaseModel):
    """One article in the feed."""

    id: str
    headline: str
    summary: str = ""
    source: str = ""
    timestamp: datetime
    url: str | None = None
    relevant_stocks: list[str] = Field(default_factory=list)
    category: NewsCategory = "company"
    is_recent: bool = False


class NewsResponse(BaseModel):
    news: list[NewsItem]
    count: int


class NewsCacheStatus(BaseModel):
    active: bool
    ttl_seconds: int
