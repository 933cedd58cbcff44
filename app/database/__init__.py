"""Database module: async SQLAlchemy engine, sessions and ORM models."""

from .connection import (
    close_database,
    close_sqlalchemy_engine,
    create_schema,
    database_healthcheck,
    get_engine,
    get_session,
    init_database,
    init_sqlalchemy_engine,
)
from .orm import Base, PortfolioHolding, User


__all__ = [
    "Base",
    "PortfolioHolding",
    "User",
    "close_database",
    "close_sqlalchemy_engine",
    "create_schema",
    "database_healthcheck",
    "get_engine",
    "get_session",
    "init_database",
    "init_sqlalchemy_engine",
]
