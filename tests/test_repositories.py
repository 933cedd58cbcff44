"""Tests for the user and holdings repositories against SQLite."""

from __future__ import annotations

from decimal import Decimal

import pytest

from app.core.config import settings
from app.core.exceptions import ConflictError, ValidationError
from app.core.security import verify_password
from app.repositories import holdings_orm as holdings_repo
from app.repositories import users_orm as users_repo


pytestmark = pytest.mark.asyncio


async def _user(email: str = "asha@example.com") -> users_repo.User:
    return await users_repo.create_user("Asha Rao", email, "hash")


class TestUsersRepository:
    async def test_create_normalizes_email(self, db):
        user = await users_repo.create_user("  Asha Rao ", " Asha@Example.COM ", "hash")
        assert user.email == "asha@example.com"
        assert user.name == "Asha Rao"
        assert user.role == "user"
        assert (await users_repo.get_user_by_email("ASHA@example.com")).id == user.id

    async def test_duplicate_email_conflicts(self, db):
        await _user()
        with pytest.raises(ConflictError):
            await _user("ASHA@example.com")

    async def test_short_name_is_rejected(self, db):
        with pytest.raises(ValidationError):
            await users_repo.create_user("A", "a@example.com", "hash")

    async def test_public_dict_hides_password_hash(self, db):
        user = await _user()
        assert "password_hash" not in user.public_dict()

    async def test_record_login(self, db):
        user = await _user()
        assert user.last_login is None
        updated = await users_repo.record_login(user.id)
        assert updated.last_login is not None
        assert await users_repo.record_login(9999) is None

    async def test_seed_admin_creates_then_promotes(self, db, monkeypatch):
        monkeypatch.setattr(settings, "admin_email", "Root@Example.com")
        monkeypatch.setattr(settings, "admin_password", "admin-pass-123")

        await users_repo.seed_admin_from_env()
        admin = await users_repo.get_user_by_email("root@example.com")
        assert admin.is_admin
        assert verify_password("admin-pass-123", admin.password_hash)

        monkeypatch.setattr(settings, "admin_password", "rotated-pass-456")
        await users_repo.seed_admin_from_env()
        admin = await users_repo.get_user_by_email("root@example.com")
        assert verify_password("rotated-pass-456", admin.password_hash)

    async def test_seed_admin_skipped_without_credentials(self, db, monkeypatch):
        monkeypatch.setattr(settings, "admin_email", "")
        await users_repo.seed_admin_from_env()
        assert await users_repo.get_user_by_email("root@example.com") is None


class TestHoldingsRepository:
    async def test_upsert_creates_then_updates(self, db):
        user = await _user()

        holding, created = await holdings_repo.upsert_holding(
            user.id, "tcs", quantity=5, purchase_price=3900.456, notes="core"
        )
        assert created is True
        assert holding["symbol"] == "TCS"
        assert holding["purchase_price"] == Decimal("3900.46")
        assert holding["purchase_date"] is not None

        holding, created = await holdings_repo.upsert_holding(user.id, "TCS", quantity=7)
        assert created is False
        assert holding["quantity"] == 7
        assert holding["purchase_price"] == Decimal("3900.46")
        assert holding["notes"] == "core"

    async def test_list_is_ordered_by_symbol(self, db):
        user = await _user()
        for symbol in ("WIPRO", "INFY", "TCS"):
            await holdings_repo.upsert_holding(user.id, symbol, quantity=1)
        assert [h["symbol"] for h in await holdings_repo.list_holdings(user.id)] == [
            "INFY",
            "TCS",
            "WIPRO",
        ]

    async def test_update_and_delete(self, db):
        user = await _user()
        await holdings_repo.upsert_holding(user.id, "ITC", quantity=10)

        updated = await holdings_repo.update_holding(user.id, "itc", {"notes": "dividend"})
        assert updated["notes"] == "dividend"
        assert updated["quantity"] == 10
        assert await holdings_repo.update_holding(user.id, "NOPE", {"quantity": 1}) is None

        assert await holdings_repo.delete_holding(user.id, "itc") is True
        assert await holdings_repo.delete_holding(user.id, "itc") is False
        assert await holdings_repo.get_holding(user.id, "ITC") is None

    async def test_unknown_field_is_rejected(self, db):
        user = await _user()
        await holdings_repo.upsert_holding(user.id, "ITC", quantity=1)
        with pytest.raises(KeyError):
            await holdings_repo.update_holding(user.id, "ITC", {"user_id": 2})

    async def test_negative_quantity_is_rejected(self, db):
        user = await _user()
        with pytest.raises(ValidationError):
            await holdings_repo.upsert_holding(user.id, "ITC", quantity=-1)

    async def test_price_beyond_column_range_is_rejected(self, db):
        user = await _user()
        with pytest.raises(ValidationError):
            await holdings_repo.upsert_holding(user.id, "MRF", quantity=1, purchase_price=10**8)

    async def test_holdings_are_scoped_per_user(self, db):
        first = await _user("one@example.com")
        second = await _user("two@example.com")
        await holdings_repo.upsert_holding(first.id, "TCS", quantity=1)
        _, created = await holdings_repo.upsert_holding(second.id, "TCS", quantity=2)

        assert created is True
        assert (await holdings_repo.get_holding(first.id, "TCS"))["quantity"] == 1
        assert await holdings_repo.list_holdings(second.id) != []
