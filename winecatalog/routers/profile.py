"""
Wine Catalog - Profile Router
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from ..core.errors import NotFoundError
from ..core.security import SessionContext, get_current_session
from ..models.base import validate_payload
from ..models.profile import Profile, ProfileUpdate
from ..repositories import ProfileRepository, get_profile_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["Profile"])


@router.get("", response_model=Profile)
async def get_profile(
    session: SessionContext = Depends(get_current_session),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> Profile:
    profile = await profiles.get(session.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


@router.put("", response_model=Profile)
async def update_profile(
    payload: Any = Body(default=None),
    session: SessionContext = Depends(get_current_session),
    profiles: ProfileRepository = Depends(get_profile_repository),
) -> Profile:
    """Update username and/or names. A taken username is a 400."""
    changes = validate_payload(ProfileUpdate, payload, "profile").model_dump(exclude_unset=True)
    profile = await profiles.update(session.user_id, changes)
    if profile is None:
        raise NotFoundError("Profile not found")

    logger.info(f"Updated profile {session.user_id}: {sorted(changes)}")
    return profile
