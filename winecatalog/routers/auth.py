"""
Wine Catalog - Auth Router

Registration, password login and email confirmation, delegated to the
identity provider.
"""

import logging
import re
from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import RedirectResponse
from pydantic import field_validator

from ..config import get_settings
from ..core.errors import CatalogError, ValidationError
from ..models.base import PayloadModel, validate_payload
from ..models.profile import USERNAME_PATTERN
from ..repositories import ProfileRepository, get_profile_repository
from ..services.identity import IdentityProvider, get_identity_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


# =============================================================================
# Request Models
# =============================================================================


class RegisterRequest(PayloadModel):
    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        if not USERNAME_PATTERN.match(value):
            raise ValueError("Username must be 3-50 characters: letters, digits, '.', '_' or '-'")
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value.lower()

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value


class LoginRequest(PayloadModel):
    email: str
    password: str


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: Any = Body(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> dict[str, Any]:
    """Create an account; the provider emails a confirmation link."""
    request = validate_payload(RegisterRequest, payload, "registration")

    if await profiles.get_by_username(request.username):
        raise ValidationError("Username already taken")

    redirect_to = f"{get_settings().PUBLIC_BASE_URL.rstrip('/')}/api/auth/confirm-email"
    user = await identity.sign_up(request.email, request.password, request.username, redirect_to)
    await profiles.ensure(user.id, request.username)

    logger.info(f"Registered {user.id} as '{request.username}'")
    return {
        "success": True,
        "message": "Registration successful! Please check your email to confirm your account.",
        "user": user.to_dict(),
    }


@router.post("/login")
async def login(
    payload: Any = Body(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> dict[str, Any]:
    """Password login. 401 on bad credentials, 400 while the email is unconfirmed."""
    request = validate_payload(LoginRequest, payload, "login")
    user, session = await identity.sign_in(request.email, request.password)

    return {
        "success": True,
        "user": user.to_dict(),
        "token": session["access_token"] if session else None,
        "session": session,
    }


@router.get("/confirm-email")
async def confirm_email(
    token: str | None = Query(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> RedirectResponse:
    """Redirect to the client root with ``emailConfirmed`` set."""
    if not token:
        query = urlencode({"emailConfirmed": "false", "error": "Missing confirmation token"})
        return RedirectResponse(f"/?{query}", status_code=status.HTTP_302_FOUND)

    try:
        user = await identity.verify_email(token)
    except CatalogError as e:
        logger.warning(f"Email confirmation failed: {e.message}")
        query = urlencode({"emailConfirmed": "false", "error": e.message})
        return RedirectResponse(f"/?{query}", status_code=status.HTTP_302_FOUND)

    logger.info(f"Email confirmed for {user.id}")
    return RedirectResponse("/?emailConfirmed=true", status_code=status.HTTP_302_FOUND)
