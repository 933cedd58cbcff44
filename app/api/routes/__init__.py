"""API routes package."""

from . import admin, auth, health, insights, market, news, portfolio


__all__ = [
    "admin",
    "auth",
    "health",
    "insights",
    "market",
    "news",
    "portfolio",
]
