"""
Wine Catalog - Product & Ingredient Catalog Service

FastAPI service for wine producers: owner-scoped products and ingredients,
spreadsheet import/export and product images. Identity comes from Supabase
Auth, data lives in Postgres.
"""

__version__ = "0.1.0"
