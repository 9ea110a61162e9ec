"""
Tests for the spreadsheet codec (pandas + openpyxl).
"""

import io

import pytest
from openpyxl import load_workbook

from winecatalog.core.errors import UpstreamError
from winecatalog.services.spreadsheet import (
    CSV_MIME,
    XLSX_MIME,
    is_spreadsheet_upload,
    read_rows,
    write_workbook,
)


class TestIsSpreadsheetUpload:
    def test_accepts_by_content_type(self):
        assert is_spreadsheet_upload("upload.bin", XLSX_MIME)
        assert is_spreadsheet_upload(None, "text/csv; charset=utf-8")

    def test_accepts_by_extension_when_content_type_wrong(self):
        assert is_spreadsheet_upload("products.csv", "application/octet-stream")
        assert is_spreadsheet_upload("Products.XLSX", None)
        assert is_spreadsheet_upload("legacy.xls", "")

    def test_rejects_other_files(self):
        assert not is_spreadsheet_upload("photo.png", "image/png")


class TestWriteWorkbook:
    def test_single_named_sheet_with_header_row(self):
        content = write_workbook([["Rosso", "750 ml"], ["Bianco", None]], ["Name", "Net Volume"], "Products")

        workbook = load_workbook(io.BytesIO(content))
        assert workbook.sheetnames == ["Products"]
        sheet = workbook["Products"]
        assert [cell.value for cell in sheet[1]] == ["Name", "Net Volume"]
        assert [cell.value for cell in sheet[2]] == ["Rosso", "750 ml"]

    def test_empty_export_keeps_headers(self):
        content = write_workbook([], ["Name", "SKU"], "Products")

        sheet = load_workbook(io.BytesIO(content))["Products"]
        assert [cell.value for cell in sheet[1]] == ["Name", "SKU"]


class TestReadRows:
    def test_xlsx_rows_keyed_by_header(self):
        content = write_workbook([["Rosso", "R-1"], ["", "R-2"]], ["Name", "SKU"], "Products")

        rows = read_rows(content, "products.xlsx", XLSX_MIME)

        assert rows == [{"Name": "Rosso", "SKU": "R-1"}, {"Name": "", "SKU": "R-2"}]

    def test_csv_cells_are_strings(self):
        content = "Name,Vintage,SKU\nRosso,2019,001\nBianco,,002\n".encode("utf-8")

        rows = read_rows(content, "products.csv", CSV_MIME)

        assert rows[0] == {"Name": "Rosso", "Vintage": "2019", "SKU": "001"}
        assert rows[1]["Vintage"] == ""

    def test_csv_with_byte_order_mark(self):
        content = "\ufeffName\nRosso\n".encode("utf-8")

        assert read_rows(content, "products.csv", None) == [{"Name": "Rosso"}]

    def test_undecodable_workbook_is_upstream_error(self):
        with pytest.raises(UpstreamError) as exc_info:
            read_rows(b"this is not a workbook", "products.xlsx", XLSX_MIME)

        assert exc_info.value.status_code == 500
