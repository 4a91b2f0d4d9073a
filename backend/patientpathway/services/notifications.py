"""
New-lead notification fan-out.

After a quiz submission the doctor's configured channels are tried one after
another:

    welcome_sms    doctor has Twilio credentials, lead has a phone
    welcome_email  Resend is configured, lead has an email
    doctor_sms     doctor has Twilio credentials and a phone
    doctor_email   Resend is configured, doctor has an email

Each attempt is isolated: an exception or provider failure is recorded as a
"failed" attempt and the next kind still runs. All attempts are then written
to lead_communications in one batch. Nothing is retried.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.database import SessionLocal
from ..core.security import mask_phone
from ..models.communication import CommunicationStatus, LeadCommunication
from ..models.doctor_profile import DoctorProfile
from ..models.lead import QuizLead
from .email_service import EmailService, get_email_service
from .email_templates import build_new_lead_alert, build_welcome_email
from .quiz_scoring import get_quiz_info
from .sms_service import SMSService, render_sms_template


logger = logging.getLogger(__name__)

SMSFactory = Callable[[DoctorProfile], SMSService]


@dataclass
class NotificationAttempt:
    type: str
    message: str
    status: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == CommunicationStatus.SENT.value


class NotificationFanout:
    """
    Runs the best-effort notification pass for one lead.

    Args:
        db: Session used for the audit insert
        email_service: Resend-backed sender
        sms_factory: Builds an SMS sender from a doctor's credentials
    """

    def __init__(
        self,
        db: Session,
        email_service: Optional[EmailService] = None,
        sms_factory: SMSFactory = SMSService.for_doctor,
    ):
        self.db = db
        self.email_service = email_service or get_email_service()
        self.sms_factory = sms_factory

    # ==========================================================================
    # Fan-out
    # ==========================================================================

    def notify_new_lead(self, lead: QuizLead, doctor: DoctorProfile) -> List[NotificationAttempt]:
        """
        Attempt every configured notification for a new lead, then record them.

        Returns:
            The attempts made, in order
        """
        attempts: List[NotificationAttempt] = []
        quiz_title = get_quiz_info(lead.quiz_type)["title"]
        doctor_name = f"Dr. {doctor.full_name}" if doctor.full_name else "your doctor"

        if doctor.has_twilio_credentials and lead.phone:
            message = render_sms_template(
                "welcome_sms",
                patient_name=lead.name,
                quiz_title=quiz_title,
                doctor_name=doctor_name,
            )
            attempts.append(self._attempt_sms("welcome_sms", doctor, lead.phone, message))

        if self.email_service.is_configured and lead.email:
            attempts.append(self._attempt_email(
                "welcome_email",
                lambda: build_welcome_email(lead, doctor),
                to=lead.email,
                reply_to=doctor.email,
            ))

        if doctor.has_twilio_credentials and doctor.phone:
            message = render_sms_template(
                "doctor_sms",
                patient_name=lead.name,
                quiz_title=quiz_title,
                score=lead.score,
            )
            attempts.append(self._attempt_sms("doctor_sms", doctor, doctor.phone, message))

        if self.email_service.is_configured and doctor.email:
            attempts.append(self._attempt_email(
                "doctor_email",
                lambda: build_new_lead_alert(lead, doctor),
                to=doctor.email,
            ))

        sent = sum(1 for attempt in attempts if attempt.succeeded)
        logger.info(
            f"Lead {lead.id} notifications: {sent}/{len(attempts)} sent "
            f"({', '.join(attempt.type for attempt in attempts) or 'none configured'})"
        )

        self.record_attempts(lead.id, attempts)
        return attempts

    def _attempt_sms(
        self,
        kind: str,
        doctor: DoctorProfile,
        to_number: str,
        message: str,
    ) -> NotificationAttempt:
        try:
            result = self.sms_factory(doctor).send_sms(to_number, message)
        except Exception as e:
            logger.error(f"{kind} to {mask_phone(to_number)} failed: {e}")
            return NotificationAttempt(kind, message, CommunicationStatus.FAILED.value, {"error": str(e)})

        if result.get("success"):
            return NotificationAttempt(
                kind, message, CommunicationStatus.SENT.value,
                {"provider": "twilio", "message_sid": result.get("message_sid")},
            )
        return NotificationAttempt(
            kind, message, CommunicationStatus.FAILED.value,
            {"provider": "twilio", "error": result.get("error")},
        )

    def _attempt_email(
        self,
        kind: str,
        build: Callable[[], Dict[str, str]],
        to: str,
        reply_to: Optional[str] = None,
    ) -> NotificationAttempt:
        subject = kind
        try:
            content = build()
            subject = content["subject"]
            result = self.email_service.send_email(
                to=to,
                subject=subject,
                html=content["html"],
                text=content["text"],
                reply_to=reply_to,
            )
        except Exception as e:
            logger.error(f"{kind} failed: {e}")
            return NotificationAttempt(kind, subject, CommunicationStatus.FAILED.value, {"error": str(e)})

        if result.get("success"):
            return NotificationAttempt(
                kind, subject, CommunicationStatus.SENT.value,
                {"provider": "resend", "email_id": result.get("id")},
            )
        return NotificationAttempt(
            kind, subject, CommunicationStatus.FAILED.value,
            {"provider": "resend", "error": result.get("error")},
        )

    # ==========================================================================
    # Audit
    # ==========================================================================

    def record_attempts(self, lead_id: Optional[UUID], attempts: List[NotificationAttempt]) -> bool:
        """
        Batch-insert attempts into lead_communications.

        Returns:
            False if the insert failed; the error is logged, never raised
        """
        if not attempts:
            return True

        rows = [
            LeadCommunication(
                lead_id=lead_id,
                communication_type=attempt.type,
                message=attempt.message,
                status=attempt.status,
                details=attempt.metadata,
            )
            for attempt in attempts
        ]
        try:
            self.db.add_all(rows)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to record {len(rows)} notification attempt(s) for lead {lead_id}: {e}")
            return False


def log_communication(
    db: Session,
    communication_type: str,
    message: str,
    status: str,
    lead_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> bool:
    """Record a single communication outside the fan-out (manual sends, result emails)."""
    try:
        db.add(LeadCommunication(
            lead_id=lead_id,
            communication_type=communication_type,
            message=message,
            status=status,
            details=metadata or {},
        ))
        db.commit()
        return True
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Could not log {communication_type} communication: {e}")
        return False


def run_lead_fanout(lead_id: UUID) -> None:
    """
    Background entry point: load the lead and its doctor, then fan out.

    Opens its own session since it runs after the request has finished.
    """
    db = SessionLocal()
    try:
        lead = db.get(QuizLead, lead_id)
        if lead is None:
            logger.warning(f"Lead {lead_id} not found for notification fan-out")
            return

        doctor = db.get(DoctorProfile, lead.doctor_id)
        if doctor is None:
            logger.warning(f"Doctor {lead.doctor_id} not found for lead {lead_id}; skipping notifications")
            return

        NotificationFanout(db).notify_new_lead(lead, doctor)
    except Exception as e:
        logger.error(f"Notification fan-out for lead {lead_id} aborted: {e}")
    finally:
        db.close()
