"""
Profile API endpoints.

Profiles hold the display name and the role chosen at onboarding.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from common.utils.exceptions import NotFoundException
from emotiva.dependencies import require_auth, get_profile_service
from emotiva.schemas.profile import ProfileRequest
from emotiva.services.profile.profile_service import ProfileService, format_profile


router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("")
async def get_profile(
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Get the current identity's profile."""
    profile = await profile_service.get_profile(user["_id"])
    if not profile:
        raise NotFoundException(message="Profile not found", code="PROFILE_NOT_FOUND")

    return success_response(format_profile(profile))


@router.put("")
async def save_profile(
    body: ProfileRequest,
    user: Annotated[dict, Depends(require_auth)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
):
    """Create or update the current identity's profile."""
    profile = await profile_service.save_profile(
        user_id=user["_id"],
        email=user.get("email"),
        name=body.name,
        role=body.role
    )

    return success_response(profile)
