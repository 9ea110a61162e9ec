"""
Wine Catalog - Security Layer

Resolves the caller's bearer token into a SessionContext. Handlers receive
the context as a dependency; no identity state outlives the request.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Header
from loguru import logger

from ..core.errors import AuthError, ConflictError
from ..repositories import ProfileRepository, get_profile_repository
from ..services.identity import IdentityProvider, IdentityUser, get_identity_provider
from .logging import bind


@dataclass
class SessionContext:
    """
    Authenticated caller for the current request.

    Attributes:
        user_id: identity provider's stable user id (owner of records)
        email: account email, when known
        access_token: the bearer token the request carried
    """

    user_id: str
    email: str | None
    access_token: str


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("Authentication required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Invalid authorization header format")
    return token.strip()


async def authenticate_bearer(
    authorization: str | None = Header(default=None),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> tuple[IdentityUser, str]:
    """
    Resolve the bearer token to its user. Touches no storage.

    Raises:
        AuthError 401: header missing or malformed, token unresolvable
    """
    token = _bearer_token(authorization)
    return await identity.resolve_token(token), token


async def get_current_session(
    caller: tuple[IdentityUser, str] = Depends(authenticate_bearer),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> SessionContext:
    """
    FastAPI dependency for authenticated routes.

    ``caller`` is declared first: dependencies resolve in order, so a
    rejected token never opens the database pool.
    """
    user, token = caller

    try:
        await profiles.ensure(user.id, user.username)
    except ConflictError:
        # Username claimed concurrently by someone else; keep the profile anonymous
        await profiles.ensure(user.id)

    bind(user_id=user.id)
    logger.debug(f"Authenticated via bearer token: subject={user.id}")
    return SessionContext(user_id=user.id, email=user.email, access_token=token)
