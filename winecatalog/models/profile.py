"""
Wine Catalog - Profile Models

One profile per identity, created lazily on the first authenticated request.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import field_validator

from .base import CatalogModel, PayloadModel

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


class Profile(CatalogModel):
    id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(PayloadModel):
    """Partial profile update; only supplied fields change."""

    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: Any) -> Any:
        if value is not None and not USERNAME_PATTERN.match(value):
            raise ValueError("Username must be 3-50 characters: letters, digits, '.', '_' or '-'")
        return value
