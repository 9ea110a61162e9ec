"""
Wine Catalog - Spreadsheet Codec

Decodes uploaded workbooks (.xlsx, .xls) and CSV files into header-keyed
rows, and writes single-sheet .xlsx workbooks for export.
"""

from __future__ import annotations

import io
import logging
from pathlib import PurePath
from typing import Any, Iterable, Sequence

import pandas as pd

from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"
CSV_MIME = "text/csv"

ALLOWED_CONTENT_TYPES = frozenset({XLSX_MIME, XLS_MIME, CSV_MIME})
ALLOWED_EXTENSIONS = frozenset({".xlsx", ".xls", ".csv"})


def _extension(filename: str | None) -> str:
    return PurePath(filename or "").suffix.lower()


def is_spreadsheet_upload(filename: str | None, content_type: str | None) -> bool:
    """
    Accept when the declared content type is allowed OR the extension is.

    Upload tooling reports inconsistent content types for CSV, so either
    check passing is enough.
    """
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime in ALLOWED_CONTENT_TYPES or _extension(filename) in ALLOWED_EXTENSIONS


def _detect_format(filename: str | None, content_type: str | None) -> str:
    ext = _extension(filename)
    if ext in ALLOWED_EXTENSIONS:
        return ext.lstrip(".")

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime == CSV_MIME:
        return "csv"
    if mime == XLS_MIME:
        return "xls"
    return "xlsx"


# =============================================================================
# Read / Write
# =============================================================================


def read_rows(content: bytes, filename: str | None = None, content_type: str | None = None) -> list[dict[str, str]]:
    """
    Decode the first sheet into rows keyed by the header row.

    All cells come back as strings; empty cells as "".

    Raises:
        UpstreamError: the file could not be decoded
    """
    fmt = _detect_format(filename, content_type)

    try:
        if fmt == "csv":
            df = pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                encoding="utf-8-sig",
            )
        else:
            df = pd.read_excel(
                io.BytesIO(content),
                sheet_name=0,
                dtype=str,
                keep_default_na=False,
                engine="xlrd" if fmt == "xls" else "openpyxl",
            )
    except Exception as e:
        logger.error(f"Failed to parse {fmt} upload '{filename}': {type(e).__name__}: {e}")
        raise UpstreamError(f"Failed to parse spreadsheet: {e}") from e

    df = df.fillna("")
    df.columns = [str(col).strip() for col in df.columns]

    logger.info(f"Parsed {len(df)} rows from {fmt} upload '{filename}'")
    return [{str(k): str(v) for k, v in record.items()} for record in df.to_dict(orient="records")]


def write_workbook(rows: Iterable[Sequence[Any]], headers: Sequence[str], sheet_name: str) -> bytes:
    """Write one named sheet (header row first) and return the .xlsx bytes."""
    df = pd.DataFrame(list(rows), columns=list(headers))
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()
