"""
Wine Catalog - Services

Identity provider, spreadsheet codec, catalog import/export and image
storage.
"""

from .catalog_io import INGREDIENT_SHEET, PRODUCT_SHEET, EntitySheet, ImportResult, export_workbook, import_rows
from .image_store import ImageStore, get_image_store
from .spreadsheet import is_spreadsheet_upload, read_rows, write_workbook

__all__ = [
    "EntitySheet",
    "ImportResult",
    "INGREDIENT_SHEET",
    "PRODUCT_SHEET",
    "export_workbook",
    "import_rows",
    "ImageStore",
    "get_image_store",
    "is_spreadsheet_upload",
    "read_rows",
    "write_workbook",
]
