"""
Wine Catalog - Identity Provider

Wraps Supabase Auth for registration, sign-in, email confirmation and
bearer-token resolution.

Every call builds its own client with session persistence disabled, so no
identity state is shared between requests. The supabase client is
synchronous; calls run in the default executor.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, TypeVar

import jwt
from loguru import logger
from supabase import AuthApiError, Client, ClientOptions, create_client

from ..config import Settings, get_settings
from ..core.errors import AuthError, UpstreamError, ValidationError

T = TypeVar("T")

UNCONFIRMED_EMAIL_CODE = "email_not_confirmed"


@dataclass
class IdentityUser:
    """The authenticated user as known to the identity provider."""

    id: str
    email: str | None = None
    username: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "username": self.username}


def _user_from_provider(user: Any) -> IdentityUser:
    metadata = getattr(user, "user_metadata", None) or {}
    return IdentityUser(id=str(user.id), email=getattr(user, "email", None), username=metadata.get("username"))


def _session_to_dict(session: Any) -> Optional[dict[str, Any]]:
    if session is None:
        return None
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": getattr(session, "expires_at", None),
        "token_type": getattr(session, "token_type", "bearer"),
    }


def _is_unconfirmed(error: AuthApiError) -> bool:
    code = getattr(error, "code", None)
    return code == UNCONFIRMED_EMAIL_CODE or "not confirmed" in str(error.message).lower()


class IdentityProvider:
    """Async facade over Supabase Auth."""

    def __init__(self, settings: Settings | None = None, client_factory: Callable[[], Client] | None = None):
        self.settings = settings or get_settings()
        self._client_factory = client_factory or self._create_client

    def _create_client(self) -> Client:
        key = self.settings.SUPABASE_ANON_KEY or self.settings.supabase_service_role_key
        options = ClientOptions(persist_session=False, auto_refresh_token=False)
        return create_client(self.settings.supabase_url, key, options=options)

    async def _call(self, fn: Callable[[Client], T]) -> T:
        client = self._client_factory()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, client))

    # =========================================================================
    # Token resolution
    # =========================================================================

    def _decode_local(self, token: str) -> IdentityUser:
        try:
            payload = jwt.decode(
                token,
                self.settings.SUPABASE_JWT_SECRET,
                algorithms=["HS256"],
                audience="authenticated",
            )
        except jwt.ExpiredSignatureError as e:
            logger.warning("JWT token has expired")
            raise AuthError("Invalid or expired token") from e
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {type(e).__name__}")
            raise AuthError("Invalid or expired token") from e

        subject = payload.get("sub")
        if not subject:
            raise AuthError("Invalid or expired token")
        metadata = payload.get("user_metadata") or {}
        return IdentityUser(id=str(subject), email=payload.get("email"), username=metadata.get("username"))

    async def resolve_token(self, token: str) -> IdentityUser:
        """
        Resolve a bearer token to its user.

        Raises:
            AuthError: token invalid, expired or unknown
        """
        if self.settings.SUPABASE_JWT_SECRET:
            return self._decode_local(token)

        try:
            response = await self._call(lambda c: c.auth.get_user(token))
        except AuthApiError as e:
            logger.warning(f"Token rejected by identity provider: {e.message}")
            raise AuthError("Invalid or expired token") from e
        except Exception as e:
            logger.error(f"Identity provider failed during token resolution: {type(e).__name__}: {e}")
            raise UpstreamError("Identity provider unavailable") from e

        if response is None or response.user is None:
            raise AuthError("Invalid or expired token")
        return _user_from_provider(response.user)

    # =========================================================================
    # Account flows
    # =========================================================================

    async def sign_up(self, email: str, password: str, username: str, redirect_to: str | None = None) -> IdentityUser:
        """
        Register a new account; the provider sends the confirmation email.

        Raises:
            ValidationError: duplicate email, weak password, invalid address
        """
        options: dict[str, Any] = {"data": {"username": username}}
        if redirect_to:
            options["email_redirect_to"] = redirect_to

        try:
            response = await self._call(
                lambda c: c.auth.sign_up({"email": email, "password": password, "options": options})
            )
        except AuthApiError as e:
            logger.info(f"Registration rejected for {email}: {e.message}")
            raise ValidationError(str(e.message)) from e
        except Exception as e:
            logger.error(f"Identity provider failed during registration: {type(e).__name__}: {e}")
            raise UpstreamError("Registration failed") from e

        if response.user is None:
            raise UpstreamError("Registration failed")

        logger.info(f"✅ Registered user {response.user.id}")
        return _user_from_provider(response.user)

    async def sign_in(self, email: str, password: str) -> tuple[IdentityUser, Optional[dict[str, Any]]]:
        """
        Password sign-in.

        Raises:
            AuthError: invalid credentials (401) or unconfirmed email (400)
        """
        try:
            response = await self._call(
                lambda c: c.auth.sign_in_with_password({"email": email, "password": password})
            )
        except AuthApiError as e:
            if _is_unconfirmed(e):
                raise AuthError("Please confirm your email address before logging in", status_code=400) from e
            logger.info(f"Sign-in rejected for {email}: {e.message}")
            raise AuthError("Invalid email or password") from e
        except Exception as e:
            logger.error(f"Identity provider failed during sign-in: {type(e).__name__}: {e}")
            raise UpstreamError("Login failed") from e

        if response.user is None:
            raise AuthError("Invalid email or password")
        return _user_from_provider(response.user), _session_to_dict(response.session)

    async def verify_email(self, token_hash: str) -> IdentityUser:
        """
        Confirm an email address from the link's token hash.

        Raises:
            ValidationError: token invalid or expired
        """
        try:
            response = await self._call(
                lambda c: c.auth.verify_otp({"token_hash": token_hash, "type": "email"})
            )
        except AuthApiError as e:
            logger.info(f"Email confirmation rejected: {e.message}")
            raise ValidationError("Invalid or expired confirmation token") from e
        except Exception as e:
            logger.error(f"Identity provider failed during confirmation: {type(e).__name__}: {e}")
            raise UpstreamError("Email confirmation failed") from e

        if response.user is None:
            raise ValidationError("Invalid or expired confirmation token")
        return _user_from_provider(response.user)


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency."""
    return IdentityProvider()
