"""
Wine Catalog - Image Store

Product images on local disk under UPLOADS_DIR, served read-only at
``/uploads``.
"""

from __future__ import annotations

import logging
import random
import time
from pathlib import Path, PurePosixPath

import aiofiles
import aiofiles.os

from ..config import get_settings
from ..core.errors import StorageIOError

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


class ImageStore:
    """Save and delete uploaded images in one directory."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    @staticmethod
    def make_filename(original_filename: str | None) -> str:
        """``image-{epoch_ms}-{9 random digits}{ext}``"""
        ext = PurePosixPath(original_filename or "").suffix.lower()
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999):09d}"
        return f"image-{suffix}{ext}"

    def path_for(self, image_url: str) -> Path:
        """Resolve a stored URL to its file; only the basename is honoured."""
        return self.directory / PurePosixPath(image_url).name

    async def save(self, content: bytes, original_filename: str | None) -> str:
        """Write ``content`` and return its public URL."""
        filename = self.make_filename(original_filename)
        path = self.directory / filename

        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to write image {path}: {e}")
            raise StorageIOError(f"Failed to store image: {e.strerror or e}") from e

        logger.info(f"📷 Stored image {filename} ({len(content)} bytes)")
        return f"{URL_PREFIX}/{filename}"

    async def delete(self, image_url: str) -> None:
        """Remove the referenced file; a file that is already gone is fine."""
        path = self.path_for(image_url)
        if not path.name:
            return

        try:
            await aiofiles.os.remove(path)
            logger.info(f"Deleted image {path.name}")
        except FileNotFoundError:
            logger.debug(f"Image {path.name} already absent")
        except OSError as e:
            logger.error(f"Failed to delete image {path}: {e}")
            raise StorageIOError(f"Failed to delete image: {e.strerror or e}") from e


def get_image_store() -> ImageStore:
    """FastAPI dependency: the store rooted at UPLOADS_DIR."""
    return ImageStore(get_settings().uploads_path)
