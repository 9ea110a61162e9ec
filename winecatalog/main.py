"""
Wine Catalog - FastAPI Application

    uvicorn winecatalog.main:app --reload    (or: catalog serve --reload)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import configure_logging, get_settings
from .core.errors import setup_error_handlers
from .core.middleware import RequestLoggingMiddleware
from .db import close_db_pool, init_db_pool
from .routers import auth, config, health, ingredients, products, profile

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # init_db_pool logs and returns on failure; the app still starts and
    # /api/ready answers 503 until the database is reachable.
    logger.info(f"🍷 Wine Catalog v{__version__} starting")
    await init_db_pool()
    yield
    await close_db_pool()
    logger.info("Wine Catalog stopped")


def create_app() -> FastAPI:
    """
    Build the app: CORS (outermost), request logging, error handlers,
    routers and the read-only ``/uploads`` mount for product images.
    """
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Wine Catalog",
        description="Product and ingredient catalog for wine producers.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    setup_error_handlers(app)

    for module in (health, config, auth, profile, products, ingredients):
        app.include_router(module.router)

    uploads = settings.uploads_path
    uploads.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=uploads), name="uploads")

    logger.info(f"App ready (env={settings.environment}, cors={settings.cors_allowed_origins}, uploads={uploads})")
    return app


app = create_app()
