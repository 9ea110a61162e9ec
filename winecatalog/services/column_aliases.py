"""
Wine Catalog - Column Aliases

Fixed header-alias tables for spreadsheet import. A header matches a field
when its normalized form (lowercase, no whitespace/underscores/hyphens)
equals the normalized form of one of the field's aliases.

Usage:
    from winecatalog.services.column_aliases import PRODUCT_ALIASES, resolve_row

    values = resolve_row({"Net Volume": "750 ml", "NAME": "Rosso"}, PRODUCT_ALIASES)
    # -> {"net_volume": "750 ml", "name": "Rosso"}
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Tuple

logger = logging.getLogger(__name__)

AliasTable = Dict[str, Tuple[str, ...]]

_SEPARATORS = re.compile(r"[\s_\-]+")


# =============================================================================
# Alias Tables
# =============================================================================

PRODUCT_ALIASES: AliasTable = {
    "name": ("Name", "Product Name", "Wine Name"),
    "brand": ("Brand", "Producer"),
    "net_volume": ("Net Volume", "Volume"),
    "vintage": ("Vintage", "Year"),
    "type": ("Type", "Wine Type"),
    "sugar_content": ("Sugar Content", "Sugar"),
    "appellation": ("Appellation",),
    "alcohol_content": ("Alcohol Content", "Alcohol", "ABV"),
    "country": ("Country", "Country of Origin"),
    "sku": ("SKU",),
    "ean": ("EAN", "Barcode"),
    "ingredients": ("Ingredients",),
    "packaging_gases": ("Packaging Gases",),
    "portion_size": ("Portion Size",),
    "kcal": ("kcal", "Energy kcal"),
    "kj": ("kJ", "Energy kJ"),
    "fat": ("Fat",),
    "carbohydrates": ("Carbohydrates", "Carbs"),
    "organic": ("Organic",),
    "vegetarian": ("Vegetarian",),
    "vegan": ("Vegan",),
    "operator_type": ("Operator Type",),
    "operator_name": ("Operator Name",),
    "operator_address": ("Operator Address",),
    "operator_info": ("Operator Info", "Additional Information"),
    "external_short_link": ("External Short Link", "Short Link"),
    "redirect_link": ("Redirect Link",),
}

INGREDIENT_ALIASES: AliasTable = {
    "name": ("Name", "Ingredient Name", "Ingredient"),
    "category": ("Category",),
    "e_number": ("E Number", "E-Number", "ENumber", "E No"),
    "allergens": ("Allergens", "Allergen"),
    "details": ("Details", "Description", "Notes"),
}


# =============================================================================
# Resolution
# =============================================================================


def normalize_header(header: Any) -> str:
    """``" Net_Volume "`` -> ``"netvolume"``"""
    return _SEPARATORS.sub("", str(header).strip().lower())


def build_lookup(aliases: AliasTable) -> Dict[str, str]:
    """Map every normalized spelling (field names included) to its field."""
    lookup: Dict[str, str] = {}
    for field_name, spellings in aliases.items():
        for spelling in (field_name, *spellings):
            lookup.setdefault(normalize_header(spelling), field_name)
    return lookup


def resolve_row(raw_row: Mapping[str, Any], aliases: AliasTable) -> Dict[str, str]:
    """
    Resolve a header-keyed row into ``{field: value}``.

    Unknown headers are dropped. When two headers resolve to the same field,
    the first non-empty value wins. Values are returned as stripped strings.
    """
    lookup = build_lookup(aliases)
    resolved: Dict[str, str] = {}

    for header, value in raw_row.items():
        field_name = lookup.get(normalize_header(header))
        if field_name is None:
            continue
        text = "" if value is None else str(value).strip()
        if resolved.get(field_name):
            continue
        resolved[field_name] = text

    return resolved


def parse_flag(value: str | None) -> bool | None:
    """Spreadsheet truthiness for certification columns; blank -> None."""
    if value is None or not value.strip():
        return None
    return value.strip().lower() in {"true", "yes", "y", "1", "x", "✓"}
