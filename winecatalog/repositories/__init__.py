"""
Wine Catalog - Repositories

Persistence gateway over the shared connection pool, plus the FastAPI
dependencies that hand a repository to each request.
"""

from __future__ import annotations

from psycopg_pool import AsyncConnectionPool

from ..core.errors import UpstreamError
from ..db import get_pool
from .base import OwnedRepository
from .ingredients import IngredientRepository
from .products import ProductRepository
from .profiles import ProfileRepository


async def _require_pool() -> AsyncConnectionPool:
    pool = await get_pool()
    if pool is None:
        raise UpstreamError("Database unavailable")
    return pool


async def get_product_repository() -> ProductRepository:
    return ProductRepository(await _require_pool())


async def get_ingredient_repository() -> IngredientRepository:
    return IngredientRepository(await _require_pool())


async def get_profile_repository() -> ProfileRepository:
    return ProfileRepository(await _require_pool())


__all__ = [
    "OwnedRepository",
    "ProductRepository",
    "IngredientRepository",
    "ProfileRepository",
    "get_product_repository",
    "get_ingredient_repository",
    "get_profile_repository",
]
