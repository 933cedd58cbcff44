"""Portfolio holdings repository - SQLAlchemy ORM async.

Holdings are keyed by ``(user_id, symbol)``; symbols are upper-cased by the
model before any lookup or write.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import PortfolioHolding


logger = get_logger("repositories.holdings_orm")

# Fields a caller may overwrite on an existing holding
UPDATABLE_FIELDS = ("quantity", "purchase_price", "purchase_date", "notes")


def _normalize_symbol(symbol: str) -> str:
    return symbol.strip().upper()


def _to_price(value: Decimal | float | int | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _holding_to_dict(h: PortfolioHolding) -> dict[str, Any]:
    return {
        "id": h.id,
        "user_id": h.user_id,
        "symbol": h.symbol,
        "quantity": h.quantity,
        "purchase_price": h.purchase_price,
        "purchase_date": h.purchase_date,
        "notes": h.notes,
        "created_at": h.created_at,
        "updated_at": h.updated_at,
    }


def _apply_fields(holding: PortfolioHolding, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        if key not in UPDATABLE_FIELDS:
            raise KeyError(f"Unknown holding field: {key}")
        if key == "purchase_price":
            value = _to_price(value)
        setattr(holding, key, value)


async def _find(session, user_id: int, symbol: str) -> PortfolioHolding | None:
    result = await session.execute(
        select(PortfolioHolding).where(
            PortfolioHolding.user_id == user_id,
            PortfolioHolding.symbol == _normalize_symbol(symbol),
        )
    )
    return result.scalar_one_or_none()


async def list_holdings(user_id: int) -> list[dict[str, Any]]:
    """List a user's holdings ordered by symbol."""
    async with get_session() as session:
        result = await session.execute(
            select(PortfolioHolding)
            .where(PortfolioHolding.user_id == user_id)
            .order_by(PortfolioHolding.symbol)
        )
        return [_holding_to_dict(h) for h in result.scalars().all()]


async def get_holding(user_id: int, symbol: str) -> dict[str, Any] | None:
    async with get_session() as session:
        holding = await _find(session, user_id, symbol)
        return _holding_to_dict(holding) if holding else None


async def upsert_holding(
    user_id: int,
    symbol: str,
    *,
    quantity: int,
    purchase_price: Decimal | float | int | None = None,
    purchase_date: datetime | None = None,
    notes: str | None = None,
) -> tuple[dict[str, Any], bool]:
    """Create the holding or update the existing one.

    On update the quantity is always replaced; ``purchase_price``,
    ``purchase_date`` and ``notes`` are only overwritten when given.

    Returns:
        ``(holding, created)``
    """
    optional = {
        "purchase_price": purchase_price,
        "purchase_date": purchase_date,
        "notes": notes,
    }
    supplied = {k: v for k, v in optional.items() if v is not None}

    async with get_session() as session:
        holding = await _find(session, user_id, symbol)
        if holding is None:
            holding = PortfolioHolding(
                user_id=user_id,
                symbol=symbol,
                quantity=quantity,
                purchase_price=_to_price(purchase_price),
                purchase_date=purchase_date or datetime.now().astimezone(),
                notes=notes,
            )
            session.add(holding)
            try:
                await session.commit()
            except IntegrityError:
                # Lost a race with a concurrent insert for the same symbol
                await session.rollback()
                holding = await _find(session, user_id, symbol)
                if holding is None:
                    raise
                _apply_fields(holding, {"quantity": quantity, **supplied})
                await session.commit()
                await session.refresh(holding)
                return _holding_to_dict(holding), False
            await session.refresh(holding)
            logger.info(
                "Holding created",
                extra={"user_id": user_id, "symbol": holding.symbol},
            )
            return _holding_to_dict(holding), True

        _apply_fields(holding, {"quantity": quantity, **supplied})
        await session.commit()
        await session.refresh(holding)
        return _holding_to_dict(holding), False


async def update_holding(
    user_id: int,
    symbol: str,
    fields: dict[str, Any],
) -> dict[str, Any] | None:
    """Partially update an existing holding. Returns None if it does not exist."""
    async with get_session() as session:
        holding = await _find(session, user_id, symbol)
        if holding is None:
            return None
        _apply_fields(holding, fields)
        await session.commit()
        await session.refresh(holding)
        return _holding_to_dict(holding)


async def delete_holding(user_id: int, symbol: str) -> bool:
    async with get_session() as session:
        result = await session.execute(
            delete(PortfolioHolding).where(
                PortfolioHolding.user_id == user_id,
                PortfolioHolding.symbol == _normalize_symbol(symbol),
            )
        )
        await session.commit()
        return result.rowcount > 0
