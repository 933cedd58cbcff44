"""Business logic services."""

from . import insights, market_data, news, portfolio


__all__ = [
    "insights",
    "market_data",
    "news",
    "portfolio",
]
