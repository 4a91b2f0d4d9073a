"""
Lead intake and pipeline operations.

Submissions arrive as loose JSON from the quiz pages and external automation
webhooks. Validation only checks that the required fields are present; the
row is inserted as-is with a server-assigned submitted_at. There is no
idempotency key, so a resubmission creates a second lead.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.doctor_profile import DoctorProfile
from ..models.lead import LeadStatus, QuizLead


logger = logging.getLogger(__name__)

REQUIRED_LEAD_FIELDS = ("name", "email", "phone", "quiz_type", "doctor_id", "score")

# Optional submission keys copied onto the row
OPTIONAL_LEAD_FIELDS = ("answers", "lead_source", "share_key", "incident_source", "custom_quiz_id")


# =============================================================================
# Errors
# =============================================================================

class LeadValidationError(ValueError):
    """A required submission field is missing or unusable."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class LeadStorageError(Exception):
    """The database rejected the lead insert."""


# =============================================================================
# Validation
# =============================================================================

def _is_missing(value: Any) -> bool:
    # A score of 0 is a real answer, so only None and blank strings count
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def validate_lead_payload(payload: Any) -> None:
    """
    Check that the body is an object and every required field is present.

    Raises:
        LeadValidationError: Naming the first missing field
    """
    if not isinstance(payload, dict):
        raise LeadValidationError("body", "Request body must be a JSON object")

    for field in REQUIRED_LEAD_FIELDS:
        if _is_missing(payload.get(field)):
            raise LeadValidationError(field)


def _coerce_uuid(field: str, value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise LeadValidationError(field, f"Invalid {field}: {value}")


def _coerce_score(value: Any) -> int:
    if isinstance(value, bool):
        raise LeadValidationError("score", f"Invalid score: {value}")
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        # NaN raises ValueError, infinity raises OverflowError
        raise LeadValidationError("score", f"Invalid score: {value}")


# =============================================================================
# Intake
# =============================================================================

def create_lead(
    db: Session,
    payload: Any,
    is_public_submission: bool = False,
) -> QuizLead:
    """
    Validate and insert a quiz submission.

    Args:
        db: Database session
        payload: Submission body
        is_public_submission: True for anonymous quiz-page submissions

    Returns:
        The inserted lead

    Raises:
        LeadValidationError: If a required field is missing or malformed
        LeadStorageError: If the insert fails
    """
    validate_lead_payload(payload)

    lead = QuizLead(
        name=str(payload["name"]).strip(),
        email=str(payload["email"]).strip(),
        phone=str(payload["phone"]).strip(),
        quiz_type=str(payload["quiz_type"]),
        doctor_id=_coerce_uuid("doctor_id", payload["doctor_id"]),
        score=_coerce_score(payload["score"]),
        lead_status=LeadStatus.NEW,
        is_public_submission=is_public_submission,
        submitted_at=datetime.now(timezone.utc),
    )
    for field in OPTIONAL_LEAD_FIELDS:
        value = payload.get(field)
        if value is None:
            continue
        if field == "custom_quiz_id":
            value = _coerce_uuid(field, value)
        setattr(lead, field, value)

    try:
        db.add(lead)
        db.commit()
        db.refresh(lead)
    except SQLAlchemyError as e:
        db.rollback()
        message = str(getattr(e, "orig", None) or e)
        logger.error(f"Error inserting lead for doctor {payload.get('doctor_id')}: {message}")
        raise LeadStorageError(message) from e

    logger.info(f"Lead {lead.id} created ({lead.quiz_type}, public={is_public_submission})")
    return lead


# =============================================================================
# Serialization
# =============================================================================

def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def serialize_lead(lead: QuizLead) -> Dict[str, Any]:
    return {
        "id": str(lead.id),
        "doctor_id": str(lead.doctor_id),
        "name": lead.name,
        "email": lead.email,
        "phone": lead.phone,
        "quiz_type": lead.quiz_type,
        "custom_quiz_id": str(lead.custom_quiz_id) if lead.custom_quiz_id else None,
        "score": lead.score,
        "answers": lead.answers,
        "lead_source": lead.lead_source,
        "lead_status": lead.lead_status.value if lead.lead_status else None,
        "incident_source": lead.incident_source,
        "share_key": lead.share_key,
        "scheduled_date": _iso(lead.scheduled_date),
        "is_public_submission": lead.is_public_submission,
        "submitted_at": _iso(lead.submitted_at),
        "created_at": _iso(lead.created_at),
    }


def build_webhook_payload(
    lead: QuizLead,
    doctor: Optional[DoctorProfile],
    submission: Dict[str, Any],
) -> Dict[str, Any]:
    """
    Shape a stored lead for downstream automation tools.

    The doctor block is None when the profile could not be loaded.
    """
    return {
        "lead": {
            "id": str(lead.id),
            "name": lead.name,
            "email": lead.email,
            "phone": lead.phone,
            "quiz_type": lead.quiz_type,
            "score": lead.score,
            "submitted_at": _iso(lead.submitted_at),
            "lead_source": submission.get("lead_source") or "webhook",
            "share_key": submission.get("share_key") or None,
        },
        "doctor": {
            "id": str(doctor.id),
            "name": f"{doctor.first_name} {doctor.last_name}",
            "email": doctor.email,
            "phone": doctor.phone,
            "clinic_name": doctor.clinic_name,
            "location": doctor.location,
        } if doctor is not None else None,
        "quiz_data": submission.get("answers") or [],
        "webhook_timestamp": datetime.now(timezone.utc).isoformat(),
    }


# =============================================================================
# Dashboard Queries
# =============================================================================

def list_doctor_leads(
    db: Session,
    doctor_id: UUID,
    status: Optional[LeadStatus] = None,
    quiz_type: Optional[str] = None,
    incident_source: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[QuizLead]:
    """A doctor's leads, newest first, bounded by the configured query limit."""
    query = db.query(QuizLead).filter(QuizLead.doctor_id == doctor_id)
    if status is not None:
        query = query.filter(QuizLead.lead_status == status)
    if quiz_type:
        query = query.filter(QuizLead.quiz_type == quiz_type)
    if incident_source:
        query = query.filter(QuizLead.incident_source == incident_source)

    bound = min(limit or settings.lead_query_limit, settings.lead_query_limit)
    return query.order_by(QuizLead.created_at.desc()).limit(bound).all()


def get_doctor_lead(db: Session, doctor_id: UUID, lead_id: UUID) -> Optional[QuizLead]:
    return (
        db.query(QuizLead)
        .filter(QuizLead.id == lead_id, QuizLead.doctor_id == doctor_id)
        .first()
    )


def update_lead_status(
    db: Session,
    lead: QuizLead,
    new_status: LeadStatus,
    scheduled_date: Optional[datetime] = None,
) -> QuizLead:
    """
    Move a lead through the pipeline.

    A scheduled_date is only kept for SCHEDULED leads.

    Raises:
        ValueError: If a scheduled_date is given for another status
    """
    if scheduled_date is not None and new_status != LeadStatus.SCHEDULED:
        raise ValueError("scheduled_date is only allowed when status is SCHEDULED")

    old_status = lead.lead_status
    lead.lead_status = new_status
    if new_status == LeadStatus.SCHEDULED:
        if scheduled_date is not None:
            lead.scheduled_date = scheduled_date
    else:
        lead.scheduled_date = None

    db.commit()
    db.refresh(lead)
    logger.info(f"Lead {lead.id} status {old_status.value if old_status else None} -> {new_status.value}")
    return lead
