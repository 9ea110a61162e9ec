"""
Wine Catalog - Products Router

Owner-scoped product CRUD, spreadsheet import/export and product images.
Every route requires a bearer token.
"""

import io
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, File, Query, Response, UploadFile, status
from fastapi.responses import StreamingResponse

from ..config import get_settings
from ..core.errors import NotFoundError, StorageIOError
from ..core.security import SessionContext, get_current_session
from ..models.base import validate_payload
from ..models.product import Product, ProductCreate, ProductUpdate
from ..repositories import ProductRepository, get_product_repository
from ..services.catalog_io import PRODUCT_SHEET, export_workbook, import_rows
from ..services.image_store import ImageStore, get_image_store
from ..services.spreadsheet import read_rows
from .uploads import read_image_upload, read_spreadsheet_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["Products"])


async def _get_owned(repo: ProductRepository, product_id: int, session: SessionContext) -> Product:
    product = await repo.get(product_id, session.user_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def _discard_image(store: ImageStore, image_url: Optional[str]) -> None:
    """Best-effort removal of a stored image."""
    if not image_url:
        return
    try:
        await store.delete(image_url)
    except StorageIOError as e:
        logger.warning(f"Could not remove image {image_url}: {e.message}")


# =============================================================================
# Collection
# =============================================================================


@router.get("", response_model=list[Product])
async def list_products(
    search: str | None = Query(default=None, description="Case-insensitive match on name, brand or SKU"),
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> list[Product]:
    return await repo.list_all(session.user_id, search=search)


@router.get("/export")
async def export_products(
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> StreamingResponse:
    """Download the caller's products as products.xlsx."""
    products = await repo.list_all(session.user_id)
    content = export_workbook(products, PRODUCT_SHEET)
    return StreamingResponse(
        io.BytesIO(content),
        media_type=PRODUCT_SHEET.media_type,
        headers={"Content-Disposition": f'attachment; filename="{PRODUCT_SHEET.filename}"'},
    )


@router.post("/import")
async def import_products(
    file: UploadFile | None = File(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> dict[str, Any]:
    """Create one product per valid row; rejected rows are reported, not fatal."""
    content = await read_spreadsheet_upload(file, get_settings().MAX_SPREADSHEET_BYTES)
    rows = read_rows(content, file.filename, file.content_type)  # type: ignore[union-attr]
    result = await import_rows(rows, PRODUCT_SHEET, repo, session.user_id)
    return result.to_dict()


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: Any = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> Product:
    data = validate_payload(ProductCreate, payload, "product")
    product = await repo.create(data.model_dump(), session.user_id)
    logger.info(f"Created product {product.id} for {session.user_id}")
    return product


# =============================================================================
# Item
# =============================================================================


@router.get("/{product_id}", response_model=Product)
async def get_product(
    product_id: int,
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> Product:
    return await _get_owned(repo, product_id, session)


@router.put("/{product_id}", response_model=Product)
async def update_product(
    product_id: int,
    payload: Any = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
) -> Product:
    """Apply only the supplied fields."""
    changes = validate_payload(ProductUpdate, payload, "product").model_dump(exclude_unset=True)
    product = await repo.update(product_id, changes, session.user_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
    store: ImageStore = Depends(get_image_store),
) -> Response:
    product = await _get_owned(repo, product_id, session)
    await _discard_image(store, product.image_url)

    if not await repo.delete(product_id, session.user_id):
        raise NotFoundError("Product not found")

    logger.info(f"Deleted product {product_id} for {session.user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Image
# =============================================================================


@router.post("/{product_id}/image")
async def upload_product_image(
    product_id: int,
    image: UploadFile | None = File(default=None),
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
    store: ImageStore = Depends(get_image_store),
) -> dict[str, str]:
    """Store the image and point the product at it; a previous image is removed."""
    product = await _get_owned(repo, product_id, session)
    content = await read_image_upload(image, get_settings().MAX_IMAGE_BYTES)

    image_url = await store.save(content, image.filename)  # type: ignore[union-attr]
    updated = await repo.update(product_id, {"image_url": image_url}, session.user_id)
    if updated is None:
        await _discard_image(store, image_url)
        raise NotFoundError("Product not found")

    if product.image_url and product.image_url != image_url:
        await _discard_image(store, product.image_url)

    return {"imageUrl": image_url, "message": "Image uploaded successfully"}


@router.delete("/{product_id}/image")
async def delete_product_image(
    product_id: int,
    session: SessionContext = Depends(get_current_session),
    repo: ProductRepository = Depends(get_product_repository),
    store: ImageStore = Depends(get_image_store),
) -> dict[str, str]:
    product = await _get_owned(repo, product_id, session)
    await _discard_image(store, product.image_url)
    if await repo.update(product_id, {"image_url": None}, session.user_id) is None:
        raise NotFoundError("Product not found")
    return {"message": "Image deleted successfully"}
