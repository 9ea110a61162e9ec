"""
Wine Catalog - API Routers
"""

from . import auth, config, health, ingredients, products, profile

__all__ = ["auth", "config", "health", "ingredients", "products", "profile"]
