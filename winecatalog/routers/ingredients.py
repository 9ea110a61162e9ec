"""
Wine Catalog - Ingredients Router

Owner-scoped ingredient library with spreadsheet import/export.
"""

import io
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from ..config import get_settings
from ..core.errors import NotFoundError
from ..core.security import SessionContext, get_current_session
from ..models.base import validate_payload
from ..models.ingredient import Ingredient, IngredientCreate, IngredientUpdate
from ..repositories import IngredientRepository, get_ingredient_repository
from ..services.catalog_io import INGREDIENT_SHEET, export_workbook, import_rows
from ..services.spreadsheet import read_rows
from .uploads import read_spreadsheet_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ingredients", tags=["Ingredients"])


@router.get("", response_model=list[Ingredient])
async def list_ingredients(
    search: str | None = Query(default=None, description="Case-insensitive match on name, category or E number"),
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> list[Ingredient]:
    return await repo.list_all(session.user_id, search=search)


@router.get("/export")
async def export_ingredients(
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> StreamingResponse:
    ingredients = await repo.list_all(session.user_id)
    content = export_workbook(ingredients, INGREDIENT_SHEET)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=INGREDIENT_SHEET.media_type,
        headers={"Content-Disposition": f'attachment; filename="{INGREDIENT_SHEET.filename}"'},
    )


@router.post("/import")
async def import_ingredients(
    file: UploadFile | None = File(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> dict[str, Any]:
    content = await read_spreadsheet_upload(file, get_settings().MAX_SPREADSHEET_BYTES)
    rows = read_rows(content, file.filename, file.content_type)  # type: ignore[union-attr]
    result = await import_rows(rows, INGREDIENT_SHEET, repo, session.user_id)
    return result.to_dict()


@router.post("", response_model=Ingredient, status_code=status.HTTP_201_CREATED)
async def create_ingredient(
    payload: Any = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> Ingredient:
    data = validate_payload(IngredientCreate, payload, "ingredient")
    ingredient = await repo.create(data.model_dump(), session.user_id)
    logger.info(f"Created ingredient {ingredient.id} for {session.user_id}")
    return ingredient


@router.get("/{ingredient_id}", response_model=Ingredient)
async def get_ingredient(
    ingredient_id: int,
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> Ingredient:
    ingredient = await repo.get(ingredient_id, session.user_id)
    if ingredient is None:
        raise NotFoundError("Ingredient not found")
    return ingredient


@router.put("/{ingredient_id}", response_model=Ingredient)
async def update_ingredient(
    ingredient_id: int,
    payload: Any = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> Ingredient:
    changes = validate_payload(IngredientUpdate, payload, "ingredient").model_dump(exclude_unset=True)
    ingredient = await repo.update(ingredient_id, changes, session.user_id)
    if ingredient is None:
        raise NotFoundError("Ingredient not found")
    return ingredient


@router.delete("/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(
    ingredient_id: int,
    session: SessionContext = Depends(get_current_session),
    repo: IngredientRepository = Depends(get_ingredient_repository),
) -> Response:
    if not await repo.delete(ingredient_id, session.user_id):
        raise NotFoundError("Ingredient not found")
    logger.info(f"Deleted ingredient {ingredient_id} for {session.user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
