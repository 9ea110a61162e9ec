"""
Wine Catalog - Upload Helpers

Reads multipart uploads with size and type checks shared by the catalog
routers.
"""

from fastapi import UploadFile

from ..core.errors import ValidationError
from ..services.spreadsheet import is_spreadsheet_upload


async def _read_capped(file: UploadFile, max_bytes: int, label: str) -> bytes:
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise ValidationError(f"{label} exceeds the {max_bytes // (1024 * 1024)} MB limit")
    if not content:
        raise ValidationError(f"{label} is empty")
    return content


async def read_spreadsheet_upload(file: UploadFile | None, max_bytes: int) -> bytes:
    """Multipart field ``file``: .xlsx, .xls or .csv."""
    if file is None:
        raise ValidationError("No file uploaded")
    if not is_spreadsheet_upload(file.filename, file.content_type):
        raise ValidationError("Only Excel (.xlsx, .xls) or CSV files are accepted")
    return await _read_capped(file, max_bytes, "Spreadsheet")


async def read_image_upload(file: UploadFile | None, max_bytes: int) -> bytes:
    """Multipart field ``image``: any ``image/*`` content type."""
    if file is None:
        raise ValidationError("No image uploaded")
    if not (file.content_type or "").lower().startswith("image/"):
        raise ValidationError("Not an image! Please upload only images.")
    return await _read_capped(file, max_bytes, "Image")
