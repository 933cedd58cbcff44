"""Admin routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import require_admin
from app.core.logging import get_logger
from app.core.security import TokenData
from app.schemas.common import MessageResponse
from app.services.market_data import clear_quote_cache
from app.services.news import clear_news_cache


logger = get_logger("api.admin")

router = APIRouter()


@router.post(
    "/cache/clear",
    response_model=MessageResponse,
    summary="Clear cached news and quotes",
)
async def clear_caches(admin: TokenData = Depends(require_admin)) -> MessageResponse:
    await clear_news_cache()
    quotes = await clear_quote_cache()
    logger.info("Caches cleared", extra={"user_id": admin.user_id, "quotes_removed": quotes})
    return MessageResponse(message=f"News cache and {quotes} cached quotes cleared")
