"""Market quote schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class Quote(BaseModel):
    """Latest price for one symbol."""

    symbol: str = Field(..., examples=["RELIANCE"])
    name: str = Field(..., examples=["Reliance Industries Ltd"])
    price: float
    change: float
    change_percent: float
    source: Literal["live", "fallback"] = Field(
        default="live", description="'fallback' when generated locally"
    )


class StockSearchResponse(BaseModel):
    query: str
    symbols: list[str] = Field(default_factory=list)
