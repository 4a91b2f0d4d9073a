"""
Authentication dependencies for FastAPI routes.

Provides:
- get_current_user: verifies the Supabase bearer token, returns its claims
- get_current_doctor: resolves the caller's DoctorProfile (created on first use)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from .database import get_db
from .security import decode_token
from ..models.doctor_profile import DoctorProfile
from ..services.profiles import get_or_create_doctor_profile


logger = logging.getLogger(__name__)

# Tokens are issued by Supabase Auth; tokenUrl is only shown in Swagger UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/v1/token", auto_error=False)


@dataclass
class AuthenticatedUser:
    user_id: str
    email: Optional[str] = None


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
) -> AuthenticatedUser:
    """
    Verify the bearer token and return the caller's identity.

    Raises 401 if the token is missing, invalid, or has no subject.
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AuthenticatedUser(user_id=user_id, email=payload.get("email"))


async def get_current_doctor(
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DoctorProfile:
    """Return the caller's doctor profile, deduplicating or creating as needed."""
    return get_or_create_doctor_profile(db, user.user_id, user.email)
