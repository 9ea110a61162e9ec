"""
Wine Catalog - Database Schema

DDL for profiles, products and ingredients. Applied by ``catalog init-db``;
every statement is idempotent.
"""

from __future__ import annotations

import psycopg
from loguru import logger

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id          TEXT PRIMARY KEY,
        username    TEXT UNIQUE,
        first_name  TEXT,
        last_name   TEXT,
        created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id                   BIGSERIAL PRIMARY KEY,
        name                 TEXT NOT NULL,
        brand                TEXT,
        net_volume           TEXT,
        vintage              TEXT,
        type                 TEXT,
        sugar_content        TEXT,
        appellation          TEXT,
        alcohol_content      TEXT,
        country              TEXT,
        sku                  TEXT,
        ean                  TEXT,
        ingredients          TEXT,
        packaging_gases      TEXT,
        portion_size         TEXT,
        kcal                 TEXT,
        kj                   TEXT,
        fat                  TEXT,
        carbohydrates        TEXT,
        organic              BOOLEAN NOT NULL DEFAULT FALSE,
        vegetarian           BOOLEAN NOT NULL DEFAULT FALSE,
        vegan                BOOLEAN NOT NULL DEFAULT FALSE,
        operator_type        TEXT,
        operator_name        TEXT,
        operator_address     TEXT,
        operator_info        TEXT,
        external_short_link  TEXT,
        redirect_link        TEXT,
        image_url            TEXT,
        created_by           TEXT NOT NULL REFERENCES profiles (id),
        created_at           TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at           TIMESTAMPTZ NOT NULL DEFAULT now(),
        CONSTRAINT products_owner_sku_key UNIQUE (created_by, sku)
    )
    """,
    "CREATE INDEX IF NOT EXISTS products_owner_name_idx ON products (created_by, name)",
    """
    CREATE TABLE IF NOT EXISTS ingredients (
        id          BIGSERIAL PRIMARY KEY,
        name        TEXT NOT NULL,
        category    TEXT,
        e_number    TEXT,
        allergens   TEXT[] NOT NULL DEFAULT '{}',
        details     TEXT,
        created_by  TEXT NOT NULL REFERENCES profiles (id),
        created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    "CREATE INDEX IF NOT EXISTS ingredients_owner_name_idx ON ingredients (created_by, name)",
)


def apply_schema(dsn: str) -> int:
    """Apply every DDL statement in one transaction. Returns the statement count."""
    with psycopg.connect(dsn) as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()

    logger.info(f"Applied {len(SCHEMA_STATEMENTS)} schema statements")
    return len(SCHEMA_STATEMENTS)
