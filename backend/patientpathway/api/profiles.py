"""
Doctor profile endpoints.

The signed-in doctor's profile is created on first access. Reads are served
from the per-doctor cache; any update clears that doctor's cached entries.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthenticatedUser, get_current_doctor, get_current_user
from ..core.database import get_db
from ..models.doctor_profile import DoctorProfile
from ..schemas.common import SuccessResponse
from ..schemas.profile import DoctorProfileUpdate, ProfileCountResponse
from ..services.cache import CacheService, get_cache
from ..services.profiles import count_profiles, serialize_profile, update_doctor_profile


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profiles", tags=["Profiles"])


@router.get(
    "/me",
    summary="Get My Profile",
    description="The signed-in doctor's profile (cached).",
)
async def get_my_profile(
    refresh: bool = Query(False, description="Bypass the cache"),
    doctor: DoctorProfile = Depends(get_current_doctor),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    key = f"doctor_profile_{doctor.id}"
    if refresh:
        return cache.refetch(key, lambda: serialize_profile(doctor))
    return cache.get_or_fetch(key, lambda: serialize_profile(doctor))


@router.put(
    "/me",
    summary="Update My Profile",
    description="Update profile fields; the Twilio auth token is stored encrypted.",
)
async def update_my_profile(
    update: DoctorProfileUpdate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    doctor = update_doctor_profile(db, doctor, update.model_dump(exclude_unset=True))
    cache.clear_doctor_cache(str(doctor.id))
    logger.info(f"Updated profile {doctor.id}")
    return serialize_profile(doctor)


@router.delete(
    "/me/cache",
    response_model=SuccessResponse,
    summary="Clear My Cache",
    description="Drop the cached profile, chatbot colours and AI content for the signed-in doctor.",
)
async def clear_my_cache(
    doctor: DoctorProfile = Depends(get_current_doctor),
    cache: CacheService = Depends(get_cache),
) -> SuccessResponse:
    cache.clear_doctor_cache(str(doctor.id))
    return SuccessResponse(message="Cache cleared")


@router.get(
    "/count",
    response_model=ProfileCountResponse,
    summary="Count My Profiles",
    description="Number of stored profiles for the signed-in user (1 once deduplicated).",
)
async def count_my_profiles(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProfileCountResponse:
    return ProfileCountResponse(user_id=user.user_id, count=count_profiles(db, user.user_id))
