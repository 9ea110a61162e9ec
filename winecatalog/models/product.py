"""
Wine Catalog - Product Models

Wine product records: label data, nutrition facts, certifications and
food-business-operator details.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .base import CatalogModel, PayloadModel, partial_model, require_name

CERTIFICATION_FIELDS = ("organic", "vegetarian", "vegan")


class ProductBase(CatalogModel):
    """Writable product attributes."""

    name: str
    brand: str | None = None
    net_volume: str | None = None
    vintage: str | None = None
    type: str | None = None  # Wine type (red, white, rosé, sparkling, ...)
    sugar_content: str | None = None
    appellation: str | None = None
    alcohol_content: str | None = None
    country: str | None = None
    sku: str | None = None
    ean: str | None = None
    ingredients: str | None = None
    packaging_gases: str | None = None
    portion_size: str | None = None

    # Nutrition facts (free-form text, e.g. "83 kcal")
    kcal: str | None = None
    kj: str | None = None
    fat: str | None = None
    carbohydrates: str | None = None

    organic: bool = False
    vegetarian: bool = False
    vegan: bool = False

    # Food business operator
    operator_type: str | None = None
    operator_name: str | None = None
    operator_address: str | None = None
    operator_info: str | None = None

    external_short_link: str | None = None
    redirect_link: str | None = None


class ProductCreate(ProductBase, PayloadModel):
    """Insert schema."""

    name: str = Field(default=None, validate_default=True)  # type: ignore[assignment]

    @field_validator("name", mode="before")
    @classmethod
    def _name_required(cls, value: Any) -> Any:
        return require_name(value)

    @field_validator(*CERTIFICATION_FIELDS, mode="before")
    @classmethod
    def _certification_default(cls, value: Any) -> Any:
        return False if value is None else value


ProductUpdate = partial_model(ProductCreate, "ProductUpdate")


class Product(ProductBase):
    """Stored product as returned by the API."""

    id: int
    image_url: str | None = None
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
