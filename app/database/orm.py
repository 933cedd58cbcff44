"""SQLAlchemy ORM models for StockSense.

Two tables: ``users`` and ``portfolio_holdings``. Field rules (lengths,
non-negative amounts, upper-case symbols) are enforced by ``@validates``
hooks before anything reaches the database, and again by CHECK and UNIQUE
constraints in the schema.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
    validates,
)

from app.core.exceptions import ValidationError


# Deterministic constraint names
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

USER_ROLES = ("user", "admin")


class Base(DeclarativeBase):
    """Base class for all ORM models with naming convention."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class User(Base):
    """Registered account. Passwords are stored as bcrypt hashes only."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        Enum(*USER_ROLES, name="user_role", native_enum=False),
        nullable=False,
        default="user",
        server_default="user",
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    password_reset_token: Mapped[str | None] = mapped_column(String(255))
    password_reset_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    holdings: Mapped[list[PortfolioHolding]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("name")
    def _validate_name(self, key: str, value: str) -> str:
        value = (value or "").strip()
        if not 2 <= len(value) <= 100:
            raise ValidationError(
                "Name must be between 2 and 100 characters",
                details={"messages": ["name: must be between 2 and 100 characters"]},
            )
        return value

    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        value = (value or "").strip().lower()
        if "@" not in value:
            raise ValidationError(
                "Please provide a valid email",
                details={"messages": ["email: must be a valid email address"]},
            )
        return value

    @validates("role")
    def _validate_role(self, key: str, value: str) -> str:
        if value not in USER_ROLES:
            raise ValidationError(f"Unknown role: {value}")
        return value


MAX_PURCHASE_PRICE = Decimal("99999999.99")


class PortfolioHolding(Base):
    """One instrument held by one user."""
    __tablename__ = "portfolio_holdings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    purchase_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=func.now())
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user: Mapped[User] = relationship(back_populates="holdings")

    __table_args__ = (
        UniqueConstraint("user_id", "symbol", name="uq_portfolio_holdings_user_symbol"),
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        CheckConstraint(
            "purchase_price IS NULL OR purchase_price >= 0",
            name="purchase_price_non_negative",
        ),
        Index("idx_portfolio_holdings_user", "user_id"),
    )

    @validates("symbol")
    def _validate_symbol(self, key: str, value: str) -> str:
        value = (value or "").strip().upper()
        if not 1 <= len(value) <= 20:
            raise ValidationError(
                "Symbol must be between 1 and 20 characters",
                details={"messages": ["symbol: must be between 1 and 20 characters"]},
            )
        return value

    @validates("quantity")
    def _validate_quantity(self, key: str, value: int) -> int:
        if value is None or value < 0:
            raise ValidationError(
                "Quantity cannot be negative",
                details={"messages": ["quantity: must be greater than or equal to 0"]},
            )
        return value

    @validates("purchase_price")
    def _validate_purchase_price(self, key: str, value: Decimal | None) -> Decimal | None:
        if value is not None and value < 0:
            raise ValidationError(
                "Purchase price cannot be negative",
                details={"messages": ["purchase_price: must be greater than or equal to 0"]},
            )
        if value is not None and value > MAX_PURCHASE_PRICE:
            raise ValidationError(
                "Purchase price is too large",
                details={"messages": [f"purchase_price: must be less than or equal to {MAX_PURCHASE_PRICE}"]},
            )
        return value
