"""
Wine Catalog - Ingredient Repository
"""

from __future__ import annotations

from ..models.ingredient import Ingredient, IngredientCreate
from .base import OwnedRepository


class IngredientRepository(OwnedRepository[Ingredient]):
    table = "ingredients"
    model = Ingredient
    columns = tuple(IngredientCreate.model_fields.keys())
    search_columns = ("name", "category", "e_number")
