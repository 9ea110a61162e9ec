"""
Tests for catalog import/export.

Import runs against the in-memory repositories, which apply the same owner
scoping and SKU uniqueness as the SQL ones.
"""

import io
from dataclasses import replace
from unittest.mock import AsyncMock

import pytest
from openpyxl import load_workbook

from tests.fakes import FakeIngredientRepository, FakeProductRepository
from winecatalog.models.base import PayloadModel
from winecatalog.services.catalog_io import (
    INGREDIENT_SHEET,
    PRODUCT_SHEET,
    export_workbook,
    import_rows,
)
from winecatalog.services.spreadsheet import XLSX_MIME, read_rows

OWNER = "user-1"


class _StrictRow(PayloadModel):
    name: str
    category: int
    details: int


class TestImportRows:
    @pytest.mark.asyncio
    async def test_missing_name_rejects_only_that_row(self):
        repo = FakeProductRepository()
        rows = [{"name": "A", "sku": "1"}, {"name": "", "sku": "2"}, {"name": "B", "sku": "3"}]

        result = await import_rows(rows, PRODUCT_SHEET, repo, OWNER)

        assert result.imported == 2
        assert result.errors == ["Row 3: Name is required"]
        assert [r.name for r in result.records] == ["A", "B"]
        assert len(await repo.list_all(OWNER)) == 2

    @pytest.mark.asyncio
    async def test_allergens_string_persisted_as_list(self):
        repo = FakeIngredientRepository()

        result = await import_rows([{"Name": "Fining", "Allergens": "milk, soy, egg"}], INGREDIENT_SHEET, repo, OWNER)

        assert result.errors == []
        stored = await repo.list_all(OWNER)
        assert stored[0].allergens == ["milk", "soy", "egg"]

    @pytest.mark.asyncio
    async def test_validation_failure_messages_joined(self):
        sheet = replace(INGREDIENT_SHEET, schema=_StrictRow)
        repo = FakeIngredientRepository()

        result = await import_rows([{"Name": "A", "Category": "x", "Details": "y"}], sheet, repo, OWNER)

        assert result.imported == 0
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 2: category: ")
        assert "; details: " in result.errors[0]

    @pytest.mark.asyncio
    async def test_duplicate_sku_rejects_row_and_keeps_earlier_rows(self):
        repo = FakeProductRepository()
        rows = [{"Name": "A", "SKU": "1"}, {"Name": "B", "SKU": "1"}, {"Name": "C", "SKU": "2"}]

        result = await import_rows(rows, PRODUCT_SHEET, repo, OWNER)

        assert result.imported == 2
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 3: duplicate key value")
        assert [p.name for p in await repo.list_all(OWNER)] == ["A", "C"]

    @pytest.mark.asyncio
    async def test_blank_rows_skipped(self):
        repo = FakeProductRepository()
        rows = [{"Name": "A", "SKU": ""}, {"Name": "", "SKU": ""}, {"Name": "  ", "SKU": None}]

        result = await import_rows(rows, PRODUCT_SHEET, repo, OWNER)

        assert result.imported == 1
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_records_created_under_caller(self):
        repo = FakeProductRepository()

        await import_rows([{"Name": "A"}], PRODUCT_SHEET, repo, OWNER)

        assert await repo.list_all("someone-else") == []
        assert (await repo.list_all(OWNER))[0].created_by == OWNER

    @pytest.mark.asyncio
    async def test_flag_columns_parsed(self):
        repo = FakeProductRepository()

        result = await import_rows([{"Name": "A", "Organic": "yes", "Vegan": ""}], PRODUCT_SHEET, repo, OWNER)

        assert result.records[0].organic is True
        assert result.records[0].vegan is False

    @pytest.mark.asyncio
    async def test_infrastructure_failure_aborts_batch(self):
        repo = FakeProductRepository()
        repo.create = AsyncMock(side_effect=RuntimeError("connection lost"))

        with pytest.raises(RuntimeError):
            await import_rows([{"Name": "A"}], PRODUCT_SHEET, repo, OWNER)

    @pytest.mark.asyncio
    async def test_to_dict_serializes_records_camel_case(self):
        repo = FakeProductRepository()

        result = await import_rows([{"Name": "A", "Net Volume": "750 ml"}], PRODUCT_SHEET, repo, OWNER)
        body = result.to_dict()

        assert body["success"] is True
        assert body["imported"] == 1
        assert body["records"][0]["netVolume"] == "750 ml"


class TestExport:
    @pytest.mark.asyncio
    async def test_product_columns_and_sheet_name(self):
        repo = FakeProductRepository()
        await repo.create({"name": "Rosso", "net_volume": "750 ml", "sku": "R-1", "brand": "hidden"}, OWNER)

        content = export_workbook(await repo.list_all(OWNER), PRODUCT_SHEET)

        sheet = load_workbook(io.BytesIO(content))["Products"]
        assert [c.value for c in sheet[1]] == [
            "Name", "Net Volume", "Vintage", "Type", "Sugar Content", "Appellation", "SKU",
        ]
        assert sheet[2][0].value == "Rosso"
        assert sheet[2][6].value == "R-1"

    @pytest.mark.asyncio
    async def test_allergens_joined(self):
        repo = FakeIngredientRepository()
        await repo.create({"name": "Fining", "allergens": ["milk", "egg"]}, OWNER)

        content = export_workbook(await repo.list_all(OWNER), INGREDIENT_SHEET)

        sheet = load_workbook(io.BytesIO(content))["Ingredients"]
        assert [c.value for c in sheet[1]] == ["Name", "Category", "E Number", "Allergens", "Details"]
        assert sheet[2][3].value == "milk, egg"

    @pytest.mark.asyncio
    async def test_exported_workbook_imports_back(self):
        source = FakeIngredientRepository()
        await source.create({"name": "Fining", "e_number": "E1105", "allergens": ["egg"]}, OWNER)
        content = export_workbook(await source.list_all(OWNER), INGREDIENT_SHEET)

        target = FakeIngredientRepository()
        result = await import_rows(read_rows(content, "ingredients.xlsx", XLSX_MIME), INGREDIENT_SHEET, target, OWNER)

        assert result.errors == []
        copied = (await target.list_all(OWNER))[0]
        assert (copied.name, copied.e_number, copied.allergens) == ("Fining", "E1105", ["egg"])

    @pytest.mark.asyncio
    async def test_exported_products_import_back_with_every_column(self):
        source = FakeProductRepository()
        await source.create(
            {
                "name": "Barolo Riserva",
                "net_volume": "750 ml",
                "vintage": "2016",
                "type": "Red",
                "sugar_content": "Dry",
                "appellation": "Barolo DOCG",
                "sku": "007",
            },
            OWNER,
        )
        await source.create({"name": "Prosecco", "sku": "0100"}, OWNER)
        content = export_workbook(await source.list_all(OWNER), PRODUCT_SHEET)

        target = FakeProductRepository()
        result = await import_rows(read_rows(content, "products.xlsx", XLSX_MIME), PRODUCT_SHEET, target, "user-2")

        assert result.errors == []
        assert result.imported == 2
        fields = [field_name for _, field_name in PRODUCT_SHEET.columns]
        originals = await source.list_all(OWNER)
        copies = await target.list_all("user-2")
        for original, copy in zip(originals, copies):
            assert {f: getattr(copy, f) for f in fields} == {f: getattr(original, f) for f in fields}
        assert copies[0].sku == "007"
        assert copies[1].sku == "0100"
        assert copies[1].vintage is None
