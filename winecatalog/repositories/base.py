"""
Wine Catalog - Owner-Scoped Repository

Every statement carries ``created_by = %s``: a record owned by someone else
is indistinguishable from a missing one.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, TypeVar

import psycopg
from loguru import logger
from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from ..core.errors import ConflictError

ModelT = TypeVar("ModelT", bound=BaseModel)


def conflict_from(exc: psycopg.errors.UniqueViolation) -> ConflictError:
    """Build a ConflictError carrying the database's constraint message."""
    message = exc.diag.message_primary or (str(exc).splitlines() or [""])[0]
    return ConflictError(message) if message else ConflictError()


async def fetch_one(
    pool: AsyncConnectionPool, table: str, query: sql.Composable | str, params: tuple[Any, ...]
) -> Optional[dict]:
    """Run one statement and return its first row; unique violations become ConflictError."""
    try:
        async with pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, params)
                return await cur.fetchone()
    except psycopg.errors.UniqueViolation as e:
        logger.info(f"Unique violation on {table}: {e.diag.constraint_name}")
        raise conflict_from(e) from e


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the search term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class OwnedRepository(Generic[ModelT]):
    """
    CRUD over one owner-scoped table.

    Subclasses set:
        table: table name
        model: read model class
        columns: writable columns (anything else in a change set is dropped)
        search_columns: columns matched by ``list_all(search=...)``
    """

    table: str
    model: type[ModelT]
    columns: tuple[str, ...]
    search_columns: tuple[str, ...] = ("name",)

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    # =========================================================================
    # Helpers
    # =========================================================================

    def _writable(self, values: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in values.items() if k in self.columns}

    async def _fetchone(self, query: sql.Composable, params: tuple[Any, ...]) -> Optional[dict]:
        return await fetch_one(self.pool, self.table, query, params)

    # =========================================================================
    # Operations
    # =========================================================================

    async def list_all(self, owner_id: str, search: str | None = None) -> list[ModelT]:
        """All records owned by ``owner_id``, ordered by name."""
        conditions = [sql.SQL("created_by = %s")]
        params: list[Any] = [owner_id]

        if search and search.strip():
            pattern = f"%{escape_like(search.strip())}%"
            conditions.append(
                sql.SQL("({})").format(
                    sql.SQL(" OR ").join(
                        sql.SQL("{} ILIKE %s").format(sql.Identifier(col)) for col in self.search_columns
                    )
                )
            )
            params.extend(pattern for _ in self.search_columns)

        query = sql.SQL("SELECT * FROM {} WHERE {} ORDER BY name ASC, id ASC").format(
            sql.Identifier(self.table),
            sql.SQL(" AND ").join(conditions),
        )

        async with self.pool.connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                await cur.execute(query, tuple(params))
                rows = await cur.fetchall()

        return [self.model.model_validate(row) for row in rows]

    async def get(self, record_id: int, owner_id: str) -> Optional[ModelT]:
        query = sql.SQL("SELECT * FROM {} WHERE id = %s AND created_by = %s").format(
            sql.Identifier(self.table)
        )
        row = await self._fetchone(query, (record_id, owner_id))
        return self.model.model_validate(row) if row else None

    async def create(self, values: dict[str, Any], owner_id: str) -> ModelT:
        """Insert a record stamped with ``created_by = owner_id``."""
        data = self._writable(values)
        data["created_by"] = owner_id

        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(sql.Identifier(col) for col in data),
            sql.SQL(", ").join(sql.Placeholder() for _ in data),
        )
        row = await self._fetchone(query, tuple(data.values()))
        record = self.model.model_validate(row)
        logger.debug(f"Created {self.table} id={record.id} owner={owner_id}")  # type: ignore[attr-defined]
        return record

    async def update(self, record_id: int, changes: dict[str, Any], owner_id: str) -> Optional[ModelT]:
        """
        Apply ``changes`` to the owned record and refresh ``updated_at``.

        An empty change set only refreshes ``updated_at``. Returns None when
        no record ``(record_id, owner_id)`` exists.
        """
        data = self._writable(changes)
        assignments = [sql.SQL("{} = %s").format(sql.Identifier(col)) for col in data]
        assignments.append(sql.SQL("updated_at = now()"))

        query = sql.SQL("UPDATE {} SET {} WHERE id = %s AND created_by = %s RETURNING *").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(assignments),
        )
        row = await self._fetchone(query, (*data.values(), record_id, owner_id))
        return self.model.model_validate(row) if row else None

    async def delete(self, record_id: int, owner_id: str) -> bool:
        query = sql.SQL("DELETE FROM {} WHERE id = %s AND created_by = %s").format(
            sql.Identifier(self.table)
        )
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, (record_id, owner_id))
                deleted = cur.rowcount > 0

        if deleted:
            logger.debug(f"Deleted {self.table} id={record_id} owner={owner_id}")
        return deleted
