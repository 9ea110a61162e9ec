"""
In-memory stand-ins for the repositories, identity provider and pool.

The fake repositories honour the same owner scoping and uniqueness rules as
the SQL repositories so router and import tests exercise real semantics.
"""

from __future__ import annotations

import itertools
from datetime import datetime, timezone
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

from winecatalog.core.errors import AuthError, ConflictError, ValidationError
from winecatalog.models.ingredient import Ingredient
from winecatalog.models.product import Product
from winecatalog.models.profile import Profile, ProfileUpdate
from winecatalog.repositories import IngredientRepository, ProductRepository
from winecatalog.services.identity import IdentityUser


def _now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Repositories
# =============================================================================


class FakeOwnedRepository:
    """Dict-backed repository with owner scoping."""

    model: type
    columns: tuple[str, ...]
    search_columns: tuple[str, ...]
    unique_fields: tuple[str, ...] = ()

    def __init__(self) -> None:
        self.rows: dict[int, dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def _check_unique(self, row: dict[str, Any], exclude_id: int | None = None) -> None:
        for field_name in self.unique_fields:
            value = row.get(field_name)
            if value is None:
                continue
            for other in self.rows.values():
                if other["id"] != exclude_id and other["created_by"] == row["created_by"] and other.get(field_name) == value:
                    raise ConflictError(f'duplicate key value violates unique constraint "{field_name}"')

    async def list_all(self, owner_id: str, search: str | None = None) -> list:
        rows = [r for r in self.rows.values() if r["created_by"] == owner_id]
        if search and search.strip():
            term = search.strip().lower()
            rows = [
                r for r in rows
                if any(term in str(r.get(col) or "").lower() for col in self.search_columns)
            ]
        rows.sort(key=lambda r: (r["name"], r["id"]))
        return [self.model.model_validate(r) for r in rows]

    async def get(self, record_id: int, owner_id: str) -> Optional[Any]:
        row = self.rows.get(record_id)
        if row is None or row["created_by"] != owner_id:
            return None
        return self.model.model_validate(row)

    async def create(self, values: dict[str, Any], owner_id: str) -> Any:
        row = {k: v for k, v in values.items() if k in self.columns}
        row.update(id=next(self._ids), created_by=owner_id, created_at=_now(), updated_at=_now())
        self._check_unique(row)
        self.rows[row["id"]] = row
        return self.model.model_validate(row)

    async def update(self, record_id: int, changes: dict[str, Any], owner_id: str) -> Optional[Any]:
        row = self.rows.get(record_id)
        if row is None or row["created_by"] != owner_id:
            return None
        candidate = {**row, **{k: v for k, v in changes.items() if k in self.columns}, "updated_at": _now()}
        self._check_unique(candidate, exclude_id=record_id)
        self.rows[record_id] = candidate
        return self.model.model_validate(candidate)

    async def delete(self, record_id: int, owner_id: str) -> bool:
        row = self.rows.get(record_id)
        if row is None or row["created_by"] != owner_id:
            return False
        del self.rows[record_id]
        return True


class FakeProductRepository(FakeOwnedRepository):
    model = Product
    columns = ProductRepository.columns
    search_columns = ProductRepository.search_columns
    unique_fields = ("sku",)


class FakeIngredientRepository(FakeOwnedRepository):
    model = Ingredient
    columns = IngredientRepository.columns
    search_columns = IngredientRepository.search_columns


class FakeProfileRepository:
    def __init__(self) -> None:
        self.rows: dict[str, dict[str, Any]] = {}

    async def get(self, user_id: str) -> Optional[Profile]:
        row = self.rows.get(user_id)
        return Profile.model_validate(row) if row else None

    async def get_by_username(self, username: str) -> Optional[Profile]:
        for row in self.rows.values():
            if row.get("username") == username:
                return Profile.model_validate(row)
        return None

    async def ensure(self, user_id: str, username: str | None = None) -> Profile:
        if user_id not in self.rows:
            taken = username is not None and await self.get_by_username(username) is not None
            self.rows[user_id] = {
                "id": user_id,
                "username": None if taken else username,
                "created_at": _now(),
                "updated_at": _now(),
            }
        return Profile.model_validate(self.rows[user_id])

    async def update(self, user_id: str, changes: dict[str, Any]) -> Optional[Profile]:
        row = self.rows.get(user_id)
        if row is None:
            return None
        data = {k: v for k, v in changes.items() if k in ProfileUpdate.model_fields}
        username = data.get("username")
        if username is not None:
            owner = await self.get_by_username(username)
            if owner is not None and owner.id != user_id:
                raise ConflictError('duplicate key value violates unique constraint "profiles_username_key"')
        row.update(data, updated_at=_now())
        return Profile.model_validate(row)


# =============================================================================
# Identity
# =============================================================================


class FakeIdentityProvider:
    """Token table instead of Supabase Auth."""

    def __init__(self) -> None:
        self.tokens: dict[str, IdentityUser] = {}
        self.passwords: dict[str, tuple[str, IdentityUser]] = {}
        self.unconfirmed: set[str] = set()
        self.confirm_tokens: dict[str, IdentityUser] = {}

    def add_user(self, token: str, user: IdentityUser) -> None:
        self.tokens[token] = user

    async def resolve_token(self, token: str) -> IdentityUser:
        try:
            return self.tokens[token]
        except KeyError:
            raise AuthError("Invalid or expired token") from None

    async def sign_up(self, email: str, password: str, username: str, redirect_to: str | None = None) -> IdentityUser:
        if email in self.passwords:
            raise ValidationError("User already registered")
        user = IdentityUser(id=f"user-{len(self.passwords) + 100}", email=email, username=username)
        self.passwords[email] = (password, user)
        self.unconfirmed.add(email)
        return user

    async def sign_in(self, email: str, password: str) -> tuple[IdentityUser, dict[str, Any]]:
        stored = self.passwords.get(email)
        if stored is None or stored[0] != password:
            raise AuthError("Invalid email or password")
        if email in self.unconfirmed:
            raise AuthError("Please confirm your email address before logging in", status_code=400)
        token = f"token-{stored[1].id}"
        self.tokens[token] = stored[1]
        return stored[1], {"access_token": token, "refresh_token": "refresh", "expires_at": None, "token_type": "bearer"}

    async def verify_email(self, token_hash: str) -> IdentityUser:
        user = self.confirm_tokens.get(token_hash)
        if user is None:
            raise ValidationError("Invalid or expired confirmation token")
        self.unconfirmed.discard(user.email or "")
        return user


# =============================================================================
# Pool
# =============================================================================


class MockAsyncCursor:
    """Mock async cursor that properly supports async context manager protocol."""

    def __init__(self):
        self.execute = AsyncMock()
        self.fetchall = AsyncMock(return_value=[])
        self.fetchone = AsyncMock(return_value=None)
        self.rowcount = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


class _MockConnectionContext:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


def create_mock_pool():
    """Pool whose connection().cursor() yields one shared MockAsyncCursor."""
    mock_cursor = MockAsyncCursor()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    mock_pool = MagicMock()
    mock_pool.connection.side_effect = lambda: _MockConnectionContext(mock_conn)
    return mock_pool, mock_cursor
