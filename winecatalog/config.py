"""
Wine Catalog - Configuration

Settings come from the environment, falling back to the env file named by
ENV_FILE (default ``.env.dev``).

Required:
    SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_DB_URL

Optional:
    SUPABASE_ANON_KEY       handed to browser clients by /api/config
    SUPABASE_JWT_SECRET     verify bearer tokens locally instead of asking Supabase
    ENVIRONMENT             dev | staging | prod
    LOG_LEVEL               DEBUG | INFO | WARNING | ERROR
    CATALOG_CORS_ORIGINS    comma or space separated origins
    PUBLIC_BASE_URL         base of the email confirmation link
    UPLOADS_DIR, MAX_IMAGE_BYTES, MAX_SPREADSHEET_BYTES
    HOST, PORT, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENVIRONMENT_ALIASES = {"production": "prod", "development": "dev"}
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.environ.get("ENV_FILE", ".env.dev"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., min_length=100)
    SUPABASE_DB_URL: str
    SUPABASE_ANON_KEY: str | None = None
    SUPABASE_JWT_SECRET: str | None = None

    # Runtime
    ENVIRONMENT: Literal["dev", "staging", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    PUBLIC_BASE_URL: str = "http://localhost:5000"
    CATALOG_CORS_ORIGINS: str | None = None

    # Database pool
    DB_POOL_MIN_SIZE: int = Field(default=1, ge=1)
    DB_POOL_MAX_SIZE: int = Field(default=10, ge=1)

    # Uploads
    UPLOADS_DIR: str = "uploads"
    MAX_IMAGE_BYTES: int = Field(default=5 * 1024 * 1024, gt=0)
    MAX_SPREADSHEET_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)

    @model_validator(mode="before")
    @classmethod
    def _strip_quotes(cls, values: Any) -> Any:
        # Values pasted from dashboards often arrive as "value" or 'value'.
        if isinstance(values, dict):
            return {
                key: value.strip().strip("\"'").strip() if isinstance(value, str) else value
                for key, value in values.items()
            }
        return values

    @field_validator("ENVIRONMENT", mode="before")
    @classmethod
    def _normalize_environment(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        raw = value.lower()
        if raw in ENVIRONMENT_ALIASES:
            logger.warning(f"ENVIRONMENT='{raw}' is deprecated; use '{ENVIRONMENT_ALIASES[raw]}'")
            return ENVIRONMENT_ALIASES[raw]
        return raw

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def supabase_url(self) -> str:
        return self.SUPABASE_URL

    @property
    def supabase_service_role_key(self) -> str:
        return self.SUPABASE_SERVICE_ROLE_KEY

    @property
    def supabase_db_url(self) -> str:
        return self.SUPABASE_DB_URL

    @property
    def environment(self) -> str:
        return self.ENVIRONMENT

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "prod"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "dev"

    @property
    def uploads_path(self) -> Path:
        return Path(self.UPLOADS_DIR).expanduser().resolve()

    @property
    def cors_allowed_origins(self) -> list[str]:
        """CATALOG_CORS_ORIGINS as a list of http(s) origins, or the local dev defaults."""
        raw = (self.CATALOG_CORS_ORIGINS or "").replace(",", " ").split()
        origins = [origin.rstrip("/") for origin in raw if origin.startswith("http")]
        return origins or list(DEFAULT_CORS_ORIGINS)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    get_settings.cache_clear()


def configure_logging(settings: Settings | None = None) -> None:
    """JSON logs in prod, console logs elsewhere."""
    from .core.logging import configure_structured_logging

    settings = settings or get_settings()
    configure_structured_logging(
        level=settings.LOG_LEVEL,
        json_output=settings.is_production,
        service_name="winecatalog",
    )
    for noisy in ("httpx", "httpcore", "hpack", "psycopg.pool"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# =========================================================================
# Diagnostics
# =========================================================================

REQUIRED_ENV_VARS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_DB_URL")
RECOMMENDED_PROD_VARS = ("SUPABASE_ANON_KEY", "SUPABASE_JWT_SECRET", "CATALOG_CORS_ORIGINS")
SECRET_SETTINGS = frozenset({"SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_DB_URL", "SUPABASE_JWT_SECRET"})


def effective_config() -> dict[str, Any]:
    """Every setting with secrets replaced by ``***SET*** (len=N)``."""
    settings = get_settings()
    config: dict[str, Any] = {}
    for name in Settings.model_fields:
        value = getattr(settings, name)
        if name in SECRET_SETTINGS and value:
            value = f"***SET*** (len={len(str(value))})"
        config[name] = value
    config["cors_allowed_origins"] = settings.cors_allowed_origins
    config["uploads_path"] = str(settings.uploads_path)
    return config


def validate_required_env(fail_fast: bool = True) -> dict[str, Any]:
    """
    Check the environment before Settings is built and log what was found.

    Returns ``{"valid", "present", "missing", "warnings"}``.

    Raises:
        RuntimeError: fail_fast and a required variable is missing
    """

    def is_set(name: str) -> bool:
        return bool(os.environ.get(name, "").strip())

    present = [name for name in REQUIRED_ENV_VARS if is_set(name)]
    missing = [name for name in REQUIRED_ENV_VARS if not is_set(name)]
    environment = os.environ.get("ENVIRONMENT", "dev").lower()
    warnings = []
    if ENVIRONMENT_ALIASES.get(environment, environment) == "prod":
        warnings = [f"{name} not set (recommended for prod)" for name in RECOMMENDED_PROD_VARS if not is_set(name)]

    logger.info(f"Configuration check ({environment}): present={present}")
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
    for warning in warnings:
        logger.warning(warning)

    if fail_fast and missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    return {"valid": not missing, "present": present, "missing": missing, "warnings": warnings}
