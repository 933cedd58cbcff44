"""Portfolio Pydantic schemas for API requests and responses.

Request bodies accept both snake_case and the camelCase names used by the
browser client (``purchasePrice``, ``purchaseDate``).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Largest value the NUMERIC(10, 2) column holds.
MAX_PURCHASE_PRICE = 99_999_999.99


class HoldingInput(BaseModel):
    """Add-or-update request for one symbol."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: str = Field(..., min_length=1, max_length=20, examples=["RELIANCE"])
    quantity: int = Field(..., ge=0)
    purchase_price: float | None = Field(
        default=None,
        ge=0,
        le=MAX_PURCHASE_PRICE,
        validation_alias=AliasChoices("purchase_price", "purchasePrice"),
    )
    purchase_date: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("purchase_date", "purchaseDate"),
    )
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol(cls, v):
        return v.upper().strip() if isinstance(v, str) else v


class HoldingUpdate(BaseModel):
    """Partial update; only fields present in the body are changed."""

    model_config = ConfigDict(populate_by_name=True)

    quantity: int | None = Field(default=None, ge=0)
    purchase_price: float | None = Field(
        default=None,
        ge=0,
        le=MAX_PURCHASE_PRICE,
        validation_alias=AliasChoices("purchase_price", "purchasePrice"),
    )
    purchase_date: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("purchase_date", "purchaseDate"),
    )
    notes: str | None = Field(default=None, max_length=2000)


class HoldingResponse(BaseModel):
    """Stored holding."""

    id: int
    user_id: int
    symbol: str
    quantity: int
    purchase_price: float | None = None
    purchase_date: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EnrichedHolding(HoldingResponse):
    """Stored holding plus live (or fallback) market data."""

    name: str
    price: float
    change: float
    change_percent: float
    market_value: float


class PortfolioSummary(BaseModel):
    total_value: float = 0.0
    total_change: float = 0.0
    total_change_percent: float = 0.0
    total_cost: float = 0.0
    unrealized_gain: float = 0.0
    holdings_count: int = 0


class PortfolioResponse(BaseModel):
    portfolio: list[EnrichedHolding]
    summary: PortfolioSummary


class HoldingMutationResponse(BaseModel):
    success: bool = True
    portfolio_item: HoldingResponse
    message: str
