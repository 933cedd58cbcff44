"""Data access layer repositories.

Each repository module provides async functions for database operations.
All code uses SQLAlchemy ORM models from `app.database.orm` with the
`get_session()` context manager.

- users_orm: accounts, login bookkeeping, admin seeding
- holdings_orm: portfolio holdings per user
"""

from . import holdings_orm
from . import users_orm

__all__ = [
    "holdings_orm",
    "users_orm",
]
