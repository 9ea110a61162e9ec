"""
Wine Catalog - Client Config Router

Public values the browser client needs to talk to Supabase directly.
"""

from fastapi import APIRouter

from ..config import get_settings

router = APIRouter(prefix="/api", tags=["Config"])


@router.get("/config")
async def client_config() -> dict[str, str | None]:
    settings = get_settings()
    return {
        "supabaseUrl": settings.supabase_url,
        "supabaseAnonKey": settings.SUPABASE_ANON_KEY,
    }
