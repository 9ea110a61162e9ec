"""
Wine Catalog - Models

Read models and write payload schemas for every catalog entity.
"""

from .base import CatalogModel, PayloadModel, check_payload, partial_model, validate_payload
from .ingredient import Ingredient, IngredientCreate, IngredientUpdate, split_allergens
from .product import Product, ProductCreate, ProductUpdate
from .profile import Profile, ProfileUpdate

__all__ = [
    "CatalogModel",
    "PayloadModel",
    "partial_model",
    "check_payload",
    "validate_payload",
    "Product",
    "ProductCreate",
    "ProductUpdate",
    "Ingredient",
    "IngredientCreate",
    "IngredientUpdate",
    "split_allergens",
    "Profile",
    "ProfileUpdate",
]
