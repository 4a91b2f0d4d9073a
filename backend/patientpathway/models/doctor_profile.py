"""
Doctor profile database model.

One row per authenticated account. Holds branding, contact details and the
doctor's own Twilio credentials used for SMS notifications.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, LargeBinary, String, Text, Uuid
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.security import decrypt_secret


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DoctorProfile(Base):
    """
    Account/tenant record owning leads, credentials, and branding.

    Attributes:
        id: UUID primary key (referenced as doctor_id by leads)
        user_id: Supabase Auth user id
        doctor_id: Short public 6-digit code shown to the doctor
        email_prefix: Local part for dr.<prefix>@<domain> sender addresses
        twilio_auth_token_encrypted: Fernet-encrypted Twilio auth token
    """

    __tablename__ = "doctor_profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(64), nullable=False, index=True)
    doctor_id = Column(String(16), nullable=True)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    specialty = Column(String(100), nullable=True)
    clinic_name = Column(String(255), nullable=True)
    location = Column(Text, nullable=True)
    website = Column(String(255), nullable=True)
    logo_url = Column(Text, nullable=True)
    avatar_url = Column(Text, nullable=True)
    email_prefix = Column(String(64), nullable=True)
    access_control = Column(Boolean, nullable=False, default=True)

    # SMS channel (doctor-owned Twilio account)
    twilio_account_sid = Column(String(64), nullable=True)
    twilio_auth_token_encrypted = Column(LargeBinary, nullable=True)
    twilio_phone_number = Column(String(32), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    leads = relationship("QuizLead", back_populates="doctor")

    def __repr__(self) -> str:
        return f"<DoctorProfile(id={self.id}, user_id={self.user_id})>"

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def twilio_auth_token(self) -> Optional[str]:
        return decrypt_secret(self.twilio_auth_token_encrypted)

    @property
    def has_twilio_credentials(self) -> bool:
        """True when SID, auth token and sending number are all configured."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token_encrypted
            and self.twilio_phone_number
        )
