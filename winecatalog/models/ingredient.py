"""
Wine Catalog - Ingredient Models
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .base import CatalogModel, PayloadModel, partial_model, require_name


def split_allergens(value: Any) -> list[str]:
    """
    Normalize allergens to an ordered list of trimmed, non-empty strings.

    ``"milk, soy, egg"`` -> ``["milk", "soy", "egg"]``
    """
    if value is None:
        return []
    if isinstance(value, str):
        items: list[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        return value  # let pydantic report the type error
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


class IngredientBase(CatalogModel):
    """Writable ingredient attributes."""

    name: str
    category: str | None = None
    e_number: str | None = None
    allergens: list[str] = Field(default_factory=list)
    details: str | None = None


class IngredientCreate(IngredientBase, PayloadModel):
    """Insert schema."""

    name: str = Field(default=None, validate_default=True)  # type: ignore[assignment]

    @field_validator("name", mode="before")
    @classmethod
    def _name_required(cls, value: Any) -> Any:
        return require_name(value)

    @field_validator("allergens", mode="before")
    @classmethod
    def _split_allergens(cls, value: Any) -> Any:
        return split_allergens(value)


IngredientUpdate = partial_model(IngredientCreate, "IngredientUpdate")


class Ingredient(IngredientBase):
    """Stored ingredient as returned by the API."""

    id: int
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("allergens", mode="before")
    @classmethod
    def _null_allergens(cls, value: Any) -> Any:
        return [] if value is None else value
