"""
Communication audit models.

lead_communications records every attempted patient/doctor notification;
email_logs records every email handed to Resend. Both are write-only trails.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from ..core.database import Base


class CommunicationStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadCommunication(Base):
    """
    One row per attempted notification.

    Attributes:
        communication_type: welcome_sms, doctor_email, quiz_result_email, sms, ...
        status: "sent" or "failed"
        details: Provider metadata (message SID, Resend id, error text)
    """

    __tablename__ = "lead_communications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lead_id = Column(Uuid, ForeignKey("quiz_leads.id"), nullable=True, index=True)
    communication_type = Column(String(50), nullable=False)
    message = Column(Text, nullable=True)
    status = Column(String(20), nullable=True)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True, default=_utcnow)

    lead = relationship("QuizLead", back_populates="communications")

    def __repr__(self) -> str:
        return (
            f"<LeadCommunication(id={self.id}, type={self.communication_type}, "
            f"status={self.status})>"
        )


class EmailLog(Base):
    """Email sent on behalf of a doctor."""

    __tablename__ = "email_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("doctor_profiles.id"), nullable=True, index=True)
    recipient_email = Column(Text, nullable=False)
    subject = Column(Text, nullable=True)
    status = Column(String(20), nullable=False)
    resend_id = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
