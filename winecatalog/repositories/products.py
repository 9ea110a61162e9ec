"""
Wine Catalog - Product Repository
"""

from __future__ import annotations

from ..models.product import Product, ProductCreate
from .base import OwnedRepository


class ProductRepository(OwnedRepository[Product]):
    table = "products"
    model = Product
    columns = (*ProductCreate.model_fields.keys(), "image_url")
    search_columns = ("name", "brand", "sku")
