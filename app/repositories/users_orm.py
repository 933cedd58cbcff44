"""User repository using SQLAlchemy ORM.

Usage:
    from app.repositories import users_orm as users_repo

    user = await users_repo.get_user_by_email("asha@example.com")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import ConflictError
from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import User as UserORM


logger = get_logger("repositories.users_orm")


@dataclass
class User:
    """Account record including the password hash. Use ``public_dict`` for responses."""

    id: int
    name: str
    email: str
    password_hash: str
    role: str = "user"
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @classmethod
    def from_orm(cls, user: UserORM) -> User:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            role=user.role or "user",
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def public_dict(self) -> dict[str, Any]:
        """Representation safe to return to clients (no credential fields)."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "last_login": self.last_login,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


async def get_user_by_email(email: str) -> User | None:
    async with get_session() as session:
        result = await session.execute(
            select(UserORM).where(UserORM.email == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        return User.from_orm(user) if user else None


async def get_user_by_id(user_id: int) -> User | None:
    async with get_session() as session:
        user = await session.get(UserORM, user_id)
        return User.from_orm(user) if user else None


async def create_user(
    name: str,
    email: str,
    password_hash: str,
    *,
    role: str = "user",
) -> User:
    """Insert a new user.

    Raises:
        ConflictError: the email is already registered.
        ValidationError: a field failed the model validators.
    """
    async with get_session() as session:
        user = UserORM(
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
        )
        session.add(user)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError("Email already exists", error_code="EMAIL_EXISTS")
        await session.refresh(user)
        logger.info("User created", extra={"user_id": user.id})
        return User.from_orm(user)


async def record_login(user_id: int) -> User | None:
    """Stamp ``last_login`` with the current time."""
    async with get_session() as session:
        user = await session.get(UserORM, user_id)
        if user is None:
            return None
        user.last_login = datetime.now(UTC)
        await session.commit()
        await session.refresh(user)
        return User.from_orm(user)


async def seed_admin_from_env() -> None:
    """
    Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD.

    Skipped when either is unset. An existing account is promoted to admin
    and gets its password refreshed if it no longer matches.
    """
    from app.core.config import settings
    from app.core.security import hash_password, verify_password

    email = settings.admin_email
    password = settings.admin_password
    if not email or not password:
        logger.debug("ADMIN_EMAIL or ADMIN_PASSWORD not set; skipping admin seed")
        return

    async with get_session() as session:
        result = await session.execute(
            select(UserORM).where(UserORM.email == email.strip().lower())
        )
        user = result.scalar_one_or_none()

        if user is None:
            session.add(
                UserORM(
                    name=settings.admin_name,
                    email=email,
                    password_hash=hash_password(password),
                    role="admin",
                )
            )
            await session.commit()
            logger.info("Created admin user from environment")
            return

        changed = False
        if user.role != "admin":
            user.role = "admin"
            changed = True
        if not verify_password(password, user.password_hash):
            user.password_hash = hash_password(password)
            changed = True
        if changed:
            await session.commit()
            logger.info("Updated admin user from environment")
