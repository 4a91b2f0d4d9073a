"""
Doctor profile service.

Profiles are keyed by the Supabase user id. The database does not enforce one
profile per user, so every read goes through get_or_create_doctor_profile,
which keeps the oldest row and deletes any later duplicates.
"""

import logging
import random
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.security import encrypt_secret
from ..models.doctor_profile import DoctorProfile


logger = logging.getLogger(__name__)

# Fields a doctor may edit from the settings page
EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "specialty",
    "clinic_name",
    "location",
    "website",
    "logo_url",
    "avatar_url",
    "email_prefix",
    "access_control",
    "twilio_account_sid",
    "twilio_phone_number",
)


def generate_doctor_code() -> str:
    """Random 6-digit public doctor code."""
    return str(random.randint(100000, 999999))


def get_or_create_doctor_profile(
    db: Session,
    user_id: str,
    email: Optional[str] = None,
) -> DoctorProfile:
    """
    Return the single profile for a user, creating it on first access.

    Args:
        db: Database session
        user_id: Supabase Auth user id
        email: Account email used to seed a new profile

    Returns:
        The oldest DoctorProfile for the user
    """
    profiles = (
        db.query(DoctorProfile)
        .filter(DoctorProfile.user_id == user_id)
        .order_by(DoctorProfile.created_at.asc())
        .all()
    )

    if profiles:
        primary, duplicates = profiles[0], profiles[1:]
        if duplicates:
            logger.warning(
                f"Found {len(duplicates)} duplicate profile(s) for user {user_id}; "
                f"keeping {primary.id}"
            )
            for duplicate in duplicates:
                db.delete(duplicate)
            db.commit()
        return primary

    profile = DoctorProfile(
        user_id=user_id,
        email=email,
        first_name="Doctor",
        last_name="User",
        doctor_id=generate_doctor_code(),
        access_control=True,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created doctor profile {profile.id} for user {user_id}")
    return profile


def count_profiles(db: Session, user_id: str) -> int:
    return db.query(DoctorProfile).filter(DoctorProfile.user_id == user_id).count()


def update_doctor_profile(
    db: Session,
    profile: DoctorProfile,
    updates: Dict[str, Any],
) -> DoctorProfile:
    """
    Apply editable fields to a profile.

    A twilio_auth_token key is encrypted before storage; an empty string
    clears the stored token.
    """
    for field in EDITABLE_FIELDS:
        if field in updates:
            setattr(profile, field, updates[field])

    if "twilio_auth_token" in updates:
        profile.twilio_auth_token_encrypted = encrypt_secret(updates["twilio_auth_token"])

    db.commit()
    db.refresh(profile)
    return profile


def serialize_profile(profile: DoctorProfile) -> Dict[str, Any]:
    """JSON-safe profile representation. The Twilio token is never exposed."""
    return {
        "id": str(profile.id),
        "user_id": profile.user_id,
        "doctor_id": profile.doctor_id,
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "email": profile.email,
        "phone": profile.phone,
        "specialty": profile.specialty,
        "clinic_name": profile.clinic_name,
        "location": profile.location,
        "website": profile.website,
        "logo_url": profile.logo_url,
        "avatar_url": profile.avatar_url,
        "email_prefix": profile.email_prefix,
        "access_control": profile.access_control,
        "twilio_account_sid": profile.twilio_account_sid,
        "twilio_phone_number": profile.twilio_phone_number,
        "twilio_configured": profile.has_twilio_credentials,
        "created_at": profile.created_at.isoformat() if profile.created_at else None,
        "updated_at": profile.updated_at.isoformat() if profile.updated_at else None,
    }
