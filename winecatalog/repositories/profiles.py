"""
Wine Catalog - Profile Repository

Profiles are keyed by the identity provider's user id and never deleted.
"""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from ..core.errors import NotFoundError
from ..models.profile import Profile, ProfileUpdate
from .base import fetch_one

PROFILE_COLUMNS = tuple(ProfileUpdate.model_fields.keys())


class ProfileRepository:
    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def _fetchone(self, query: sql.Composable | str, params: tuple[Any, ...]) -> Optional[dict]:
        return await fetch_one(self.pool, "profiles", query, params)

    async def get(self, user_id: str) -> Optional[Profile]:
        row = await self._fetchone("SELECT * FROM profiles WHERE id = %s", (user_id,))
        return Profile.model_validate(row) if row else None

    async def get_by_username(self, username: str) -> Optional[Profile]:
        row = await self._fetchone("SELECT * FROM profiles WHERE username = %s", (username,))
        return Profile.model_validate(row) if row else None

    async def ensure(self, user_id: str, username: str | None = None) -> Profile:
        """
        Insert the profile if absent and return the stored row.

        A username already taken by another profile is not claimed.
        """
        row = await self._fetchone(
            """
            INSERT INTO profiles (id, username)
            VALUES (%s, CASE WHEN EXISTS (SELECT 1 FROM profiles WHERE username = %s) THEN NULL ELSE %s END)
            ON CONFLICT (id) DO NOTHING
            RETURNING *
            """,
            (user_id, username, username),
        )
        if row:
            logger.info(f"Created profile for user {user_id}")
            return Profile.model_validate(row)

        existing = await self.get(user_id)
        if existing is None:
            raise NotFoundError(f"Profile {user_id} disappeared during ensure")
        return existing

    async def update(self, user_id: str, changes: dict[str, Any]) -> Optional[Profile]:
        """Apply the supplied columns; unique username violation -> ConflictError."""
        data = {k: v for k, v in changes.items() if k in PROFILE_COLUMNS}
        assignments = [sql.SQL("{} = %s").format(sql.Identifier(col)) for col in data]
        assignments.append(sql.SQL("updated_at = now()"))

        query = sql.SQL("UPDATE profiles SET {} WHERE id = %s RETURNING *").format(
            sql.SQL(", ").join(assignments)
        )
        row = await self._fetchone(query, (*data.values(), user_id))
        return Profile.model_validate(row) if row else None
