"""
Wine Catalog - Database Pool

One psycopg AsyncConnectionPool per process. The app lifespan opens it;
repositories open it lazily if the lifespan did not get there first (CLI,
tests). A pool that fails to open is logged and left closed: requests that
need the database answer 500 and /api/ready answers 503 until a later
attempt succeeds.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import psycopg
from loguru import logger
from psycopg.conninfo import conninfo_to_dict
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from . import __version__
from .config import get_settings

OPEN_TIMEOUT_SECONDS = 10.0
READY_TIMEOUT_SECONDS = 2.0


@dataclass
class PoolStatus:
    is_open: bool = False
    attempts: int = 0
    last_error: str | None = None


_status = PoolStatus()
_pool: Optional[AsyncConnectionPool] = None
_open_lock = asyncio.Lock()


def pool_status() -> PoolStatus:
    return _status


def describe_dsn(dsn: str) -> str:
    """``user@host:port/dbname`` for logs; the password never appears."""
    try:
        parts = conninfo_to_dict(dsn)
    except psycopg.ProgrammingError:
        return "<unparseable dsn>"
    return f"{parts.get('user', '?')}@{parts.get('host', 'localhost')}:{parts.get('port', 5432)}/{parts.get('dbname', '')}"


async def init_db_pool() -> None:
    global _pool

    async with _open_lock:
        if _pool is not None:
            return

        settings = get_settings()
        _status.attempts += 1
        pool = AsyncConnectionPool(
            settings.supabase_db_url,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            kwargs={"application_name": f"winecatalog-{__version__}"},
            open=False,
        )

        logger.info(f"Opening database pool to {describe_dsn(settings.supabase_db_url)}")
        try:
            await pool.open(wait=True, timeout=OPEN_TIMEOUT_SECONDS)
        except (PoolTimeout, psycopg.Error) as e:
            _status.last_error = f"{type(e).__name__}: {str(e)[:200]}"
            logger.error(f"❌ Database pool did not open (attempt {_status.attempts}): {_status.last_error}")
            await pool.close()
            return

        _pool = pool
        _status.is_open = True
        _status.last_error = None
        logger.info(f"✅ Database pool open (min={settings.DB_POOL_MIN_SIZE}, max={settings.DB_POOL_MAX_SIZE})")


async def close_db_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.close()
    _pool = None
    _status.is_open = False
    logger.info("Database pool closed")


async def get_pool() -> Optional[AsyncConnectionPool]:
    """The shared pool, opening it on first use. None if it cannot be opened."""
    if _pool is None:
        await init_db_pool()
    return _pool


async def check_db_ready(timeout: float = READY_TIMEOUT_SECONDS) -> tuple[bool, str]:
    """
    Run ``SELECT 1`` against the open pool. Never opens the pool itself.

    Returns:
        (ready, short status for the readiness body)
    """
    pool = _pool
    if pool is None:
        return False, _status.last_error or "pool not open"

    async def select_one() -> None:
        async with pool.connection() as conn:
            await conn.execute("SELECT 1")

    loop = asyncio.get_running_loop()
    started = loop.time()
    try:
        await asyncio.wait_for(select_one(), timeout=timeout)
    except asyncio.TimeoutError:
        return False, f"timeout after {timeout}s"
    except (PoolTimeout, psycopg.Error) as e:
        _status.last_error = f"{type(e).__name__}: {str(e)[:200]}"
        return False, f"error: {type(e).__name__}"

    return True, f"ok ({(loop.time() - started) * 1000:.0f}ms)"
