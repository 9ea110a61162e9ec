"""
Wine Catalog - Catalog Import/Export

Maps entity records to and from spreadsheet rows.

Import is best-effort per row: a rejected row adds a ``Row {n}: ...``
message to the result and the batch continues. Rows persisted before a
later rejection stay persisted.

Usage:
    rows = read_rows(content, filename, content_type)
    result = await import_rows(rows, PRODUCT_SHEET, repository, session.user_id)
    return result.to_dict()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from ..core.errors import ConflictError
from ..models.base import PayloadModel, check_payload
from ..models.ingredient import IngredientCreate
from ..models.product import CERTIFICATION_FIELDS, ProductCreate
from ..repositories.base import OwnedRepository
from .column_aliases import INGREDIENT_ALIASES, PRODUCT_ALIASES, AliasTable, parse_flag, resolve_row
from .spreadsheet import XLSX_MIME, write_workbook

logger = logging.getLogger(__name__)

# Header row occupies spreadsheet row 1; data row i (0-based) is row i + 2.
HEADER_ROW_OFFSET = 2


# =============================================================================
# Sheet Descriptors
# =============================================================================


@dataclass(frozen=True)
class EntitySheet:
    """How one entity maps onto a spreadsheet."""

    entity: str
    sheet_name: str
    filename: str
    columns: Tuple[Tuple[str, str], ...]  # (header, field) in export order
    aliases: AliasTable
    schema: type[PayloadModel]
    flag_fields: Tuple[str, ...] = ()
    media_type: str = XLSX_MIME

    @property
    def headers(self) -> List[str]:
        return [header for header, _ in self.columns]


PRODUCT_SHEET = EntitySheet(
    entity="product",
    sheet_name="Products",
    filename="products.xlsx",
    columns=(
        ("Name", "name"),
        ("Net Volume", "net_volume"),
        ("Vintage", "vintage"),
        ("Type", "type"),
        ("Sugar Content", "sugar_content"),
        ("Appellation", "appellation"),
        ("SKU", "sku"),
    ),
    aliases=PRODUCT_ALIASES,
    schema=ProductCreate,
    flag_fields=CERTIFICATION_FIELDS,
)

INGREDIENT_SHEET = EntitySheet(
    entity="ingredient",
    sheet_name="Ingredients",
    filename="ingredients.xlsx",
    columns=(
        ("Name", "name"),
        ("Category", "category"),
        ("E Number", "e_number"),
        ("Allergens", "allergens"),
        ("Details", "details"),
    ),
    aliases=INGREDIENT_ALIASES,
    schema=IngredientCreate,
)


# =============================================================================
# Export
# =============================================================================


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return value


def export_workbook(records: Sequence[BaseModel], sheet: EntitySheet) -> bytes:
    """Project ``records`` onto the sheet's export columns as .xlsx bytes."""
    rows = [[_cell(getattr(record, field_name, None)) for _, field_name in sheet.columns] for record in records]
    content = write_workbook(rows, sheet.headers, sheet.sheet_name)
    logger.info(f"Exported {len(rows)} {sheet.entity} rows ({len(content)} bytes)")
    return content


# =============================================================================
# Import
# =============================================================================


@dataclass
class ImportResult:
    """Outcome of one import batch."""

    success: bool = True
    imported: int = 0
    errors: List[str] = field(default_factory=list)
    records: List[BaseModel] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "imported": self.imported,
            "errors": self.errors,
            "records": [r.model_dump(mode="json", by_alias=True) for r in self.records],
        }


def _is_blank_row(raw_row: Dict[str, Any]) -> bool:
    return all(value is None or not str(value).strip() for value in raw_row.values())


def row_payload(raw_row: Dict[str, Any], sheet: EntitySheet) -> Dict[str, Any]:
    """Resolve headers to fields and coerce spreadsheet flags."""
    values: Dict[str, Any] = dict(resolve_row(raw_row, sheet.aliases))
    for flag in sheet.flag_fields:
        if flag in values:
            values[flag] = parse_flag(values[flag])
    return values


def check_row(raw_row: Dict[str, Any], sheet: EntitySheet, row_number: int) -> Tuple[Optional[PayloadModel], Optional[str]]:
    """Validate one row: ``(payload, None)`` or ``(None, "Row n: ...")``."""
    values = row_payload(raw_row, sheet)
    if not values.get("name"):
        return None, f"Row {row_number}: Name is required"

    payload, error = check_payload(sheet.schema, values, sheet.entity)
    if error is not None:
        return None, f"Row {row_number}: " + "; ".join(error.messages)
    return payload, None


async def import_rows(
    rows: Sequence[Dict[str, Any]],
    sheet: EntitySheet,
    repository: OwnedRepository,
    owner_id: str,
) -> ImportResult:
    """
    Create one record per valid row, collecting a message per rejected row.

    Completely blank rows are skipped. A uniqueness conflict rejects only
    its row; any other repository failure propagates and aborts the batch.
    """
    result = ImportResult()

    for index, raw_row in enumerate(rows):
        row_number = index + HEADER_ROW_OFFSET
        if _is_blank_row(raw_row):
            continue

        payload, error = check_row(raw_row, sheet, row_number)
        if error is not None:
            result.errors.append(error)
            continue

        try:
            record = await repository.create(payload.model_dump(), owner_id)  # type: ignore[union-attr]
        except ConflictError as e:
            result.errors.append(f"Row {row_number}: {e.message}")
            continue

        result.records.append(record)

    result.imported = len(result.records)
    logger.info(
        f"Imported {result.imported} {sheet.entity} rows for {owner_id} "
        f"({len(result.errors)} rejected)",
        extra={"imported": result.imported, "error_count": len(result.errors), "user_id": owner_id},
    )
    return result
