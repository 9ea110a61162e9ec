"""
Wine Catalog - Health Router

    GET /health, /api/health   liveness, 200 while the process runs
    GET /api/ready             readiness, 200 only when the database answers
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..config import get_settings
from ..db import check_db_ready, pool_status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    environment: str
    version: str
    timestamp: datetime


class ReadinessResponse(BaseModel):
    ready: bool
    database: str
    pool_open_attempts: int
    timestamp: datetime


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        environment=get_settings().environment,
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/api/ready", response_model=ReadinessResponse, summary="Readiness probe")
async def ready() -> JSONResponse:
    is_ready, database = await check_db_ready()
    if not is_ready:
        logger.warning(f"Not ready: {database}")

    body = ReadinessResponse(
        ready=is_ready,
        database=database,
        pool_open_attempts=pool_status().attempts,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=200 if is_ready else 503, content=body.model_dump(mode="json"))
