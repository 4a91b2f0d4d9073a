"""
Quiz lead database model.

A lead is a patient's quiz submission, tracked through a
NEW -> CONTACTED -> SCHEDULED pipeline on the doctor's dashboard.
Rows are never deleted.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from ..core.database import Base


# =============================================================================
# Enum Definitions
# =============================================================================

class LeadStatus(str, enum.Enum):
    """Lead status for tracking through the funnel."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    SCHEDULED = "SCHEDULED"


class QuizType(str, enum.Enum):
    """Built-in symptom assessments."""
    SNOT22 = "SNOT22"
    SNOT12 = "SNOT12"
    NOSE = "NOSE"
    HHIA = "HHIA"
    EPWORTH = "EPWORTH"
    DHI = "DHI"
    STOP = "STOP"
    TNSS = "TNSS"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Lead Model
# =============================================================================

class QuizLead(Base):
    """
    Patient quiz submission.

    Attributes:
        id: UUID primary key
        name: Patient name
        email / phone: Patient contact details
        quiz_type: Assessment identifier (built-in type or custom quiz title)
        score: Numeric quiz score
        answers: Raw answer list as submitted
        lead_source: Channel the submission came from
        lead_status: Pipeline status
        share_key: Share link key the patient arrived through
        incident_source: Named campaign/incident the lead is attributed to
        submitted_at: Server-assigned submission time
    """

    __tablename__ = "quiz_leads"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("doctor_profiles.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)

    quiz_type = Column(String(100), nullable=False, index=True)
    custom_quiz_id = Column(Uuid, ForeignKey("custom_quizzes.id"), nullable=True)
    score = Column(Integer, nullable=False)
    answers = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    lead_source = Column(String(50), nullable=True)
    lead_status = Column(
        SQLEnum(
            LeadStatus,
            name="lead_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=LeadStatus.NEW,
        index=True,
    )
    incident_source = Column(String(255), nullable=True)
    share_key = Column(String(64), nullable=True)
    scheduled_date = Column(DateTime(timezone=True), nullable=True)
    is_public_submission = Column(Boolean, nullable=False, default=False)

    submitted_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    doctor = relationship("DoctorProfile", back_populates="leads")
    communications = relationship("LeadCommunication", back_populates="lead")

    def __repr__(self) -> str:
        return (
            f"<QuizLead(id={self.id}, quiz_type={self.quiz_type}, "
            f"status={self.lead_status.value if self.lead_status else None})>"
        )
