"""
Communications API endpoints for emailing and texting leads.

Provides endpoints for doctors to contact their leads from the dashboard,
relay raw emails through Resend, alert a doctor about a stored lead, send a
patient their quiz results, and validate Twilio credentials.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.config import settings
from ..core.database import get_db
from ..models.communication import CommunicationStatus
from ..models.doctor_profile import DoctorProfile
from ..models.lead import LeadStatus, QuizLead
from ..schemas.common import ErrorResponse
from ..schemas.communication import (
    CommunicationResult,
    DoctorNotificationRequest,
    EmailRelayRequest,
    QuizResultEmailRequest,
    SendCommunicationRequest,
    TwilioTestRequest,
)
from ..services.email_service import (
    doctor_sender_address,
    get_email_service,
    log_email,
    strip_html,
)
from ..services.email_templates import (
    EMAIL_SUBJECTS,
    build_doctor_message,
    build_new_lead_alert,
    build_quiz_result_email,
)
from ..services.lead_service import get_doctor_lead, update_lead_status
from ..services.cache import CacheService, get_cache
from ..services.notifications import log_communication
from ..services.sms_service import SMS_TEMPLATES, SMSService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/communications", tags=["Communications"])


def _send_failed(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


# =============================================================================
# Dashboard Sends
# =============================================================================

@router.post(
    "/send",
    response_model=CommunicationResult,
    summary="Contact a Lead",
    description="Send an email or SMS to a lead from the doctor's own sender.",
    responses={
        404: {"description": "Lead not found", "model": ErrorResponse},
        500: {"description": "Sender not configured or provider error", "model": ErrorResponse},
    },
)
async def send_communication(
    request: SendCommunicationRequest,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    """
    Contact a lead by email or SMS.

    Email goes out as ``Dr. <name> <dr.<prefix>@<domain>>`` with replies to
    the doctor; SMS goes out through the doctor's Twilio account. A NEW lead
    moves to CONTACTED once the message is accepted by the provider.
    """
    lead = get_doctor_lead(db, doctor.id, request.lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    if request.type == "email":
        result = _send_lead_email(db, doctor, lead, request)
    else:
        result = _send_lead_sms(db, doctor, lead, request)

    if lead.lead_status == LeadStatus.NEW:
        lead = update_lead_status(db, lead, LeadStatus.CONTACTED)
        cache.clear_doctor_analytics(str(doctor.id))

    return {
        "success": True,
        "message": f"{request.type.upper()} sent to {lead.name}",
        "communication_type": request.type,
        "provider_id": result.get("id") or result.get("message_sid"),
        "lead_status": lead.lead_status.value,
    }


def _send_lead_email(
    db: Session,
    doctor: DoctorProfile,
    lead: QuizLead,
    request: SendCommunicationRequest,
) -> Dict[str, Any]:
    sender = doctor_sender_address(doctor)
    if sender is None:
        raise _send_failed("Email prefix not configured. Set one in your profile settings.")
    if not lead.email:
        raise _send_failed("Lead has no email address")

    content = build_doctor_message(doctor, request.message)
    subject = request.subject or content["subject"]
    result = get_email_service().send_email(
        to=lead.email,
        subject=subject,
        html=content["html"],
        text=content["text"],
        from_email=f"Dr. {doctor.full_name} <{sender}>",
        reply_to=doctor.email,
    )

    log_email(db, doctor.id, lead.email, subject, result)
    log_communication(
        db,
        "email",
        request.message,
        CommunicationStatus.SENT.value if result.get("success") else CommunicationStatus.FAILED.value,
        lead_id=lead.id,
        metadata={"provider": "resend", "subject": subject, "email_id": result.get("id"), "error": result.get("error")},
    )

    if not result.get("success"):
        raise _send_failed(result.get("error") or "Failed to send email")
    return result


def _send_lead_sms(
    db: Session,
    doctor: DoctorProfile,
    lead: QuizLead,
    request: SendCommunicationRequest,
) -> Dict[str, Any]:
    sms = SMSService.for_doctor(doctor)
    if not sms.is_configured:
        raise _send_failed("Twilio credentials not configured. Add them in your profile settings.")
    if not lead.phone:
        raise _send_failed("Lead has no phone number")

    result = sms.send_sms(lead.phone, request.message)
    log_communication(
        db,
        "sms",
        request.message,
        CommunicationStatus.SENT.value if result.get("success") else CommunicationStatus.FAILED.value,
        lead_id=lead.id,
        metadata={"provider": "twilio", "message_sid": result.get("message_sid"), "error": result.get("error")},
    )

    if not result.get("success"):
        raise _send_failed(result.get("error") or "Failed to send SMS")
    return result


# =============================================================================
# Email Relay
# =============================================================================

@router.post(
    "/email",
    summary="Send Email",
    description="Relay an email through Resend from the doctor's sender address.",
    responses={500: {"description": "Resend error", "model": ErrorResponse}},
)
async def send_email(
    request: EmailRelayRequest,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    email_service = get_email_service()
    if not email_service.is_configured:
        raise _send_failed("RESEND_API_KEY not configured")

    from_email = request.from_email or doctor_sender_address(doctor) or f"noreply@{settings.email_domain}"
    reply_to = request.reply_to or doctor.email or f"support@{settings.email_domain}"

    result = email_service.send_email(
        to=request.to,
        subject=request.subject,
        html=request.html,
        text=request.text or strip_html(request.html),
        from_email=from_email,
        reply_to=reply_to,
        cc=request.cc,
        bcc=request.bcc,
    )
    log_email(db, doctor.id, request.to, request.subject, result)

    if not result.get("success"):
        raise _send_failed(result.get("error") or "Failed to send email")

    return {"success": True, "id": result["id"], "message": "Email sent successfully"}


# =============================================================================
# Automated Notifications
# =============================================================================

@router.post(
    "/doctor-notification",
    summary="Notify Doctor of Lead",
    description="Email the owning doctor a new-lead alert with severity and answers.",
    responses={
        400: {"description": "Doctor has no email", "model": ErrorResponse},
        404: {"description": "Lead not found", "model": ErrorResponse},
        500: {"description": "Resend error", "model": ErrorResponse},
    },
)
async def notify_doctor(
    request: DoctorNotificationRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    lead = db.get(QuizLead, request.lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    doctor = db.get(DoctorProfile, lead.doctor_id)
    if doctor is None or not doctor.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Doctor email not available")

    content = build_new_lead_alert(lead, doctor)
    result = get_email_service().send_email(
        to=doctor.email,
        subject=content["subject"],
        html=content["html"],
        text=content["text"],
    )
    log_email(db, doctor.id, doctor.email, content["subject"], result)

    if not result.get("success"):
        raise _send_failed(result.get("error") or "Failed to send doctor notification")

    return {"success": True, "id": result["id"], "message": "Doctor notification sent"}


@router.post(
    "/quiz-result-email",
    summary="Email Quiz Results",
    description="Send a patient their quiz results. Simulated when email is unavailable.",
)
async def send_quiz_result_email(
    request: QuizResultEmailRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Email a patient their assessment results.

    The patient flow must not break on email trouble: when Resend is not
    configured or rejects the message, the send is reported as simulated.
    """
    doctor = db.get(DoctorProfile, request.doctor_id) if request.doctor_id else None
    content = build_quiz_result_email(
        name=request.user_name,
        quiz_type=request.quiz_type,
        score=request.score,
        doctor_name=f"Dr. {doctor.full_name}" if doctor is not None else None,
        clinic_name=doctor.clinic_name if doctor is not None else None,
    )

    email_service = get_email_service()
    result: Dict[str, Any] = {"success": False, "error": "RESEND_API_KEY not configured"}
    if email_service.is_configured:
        result = email_service.send_email(
            to=request.user_email,
            subject=content["subject"],
            html=content["html"],
            text=content["text"],
            reply_to=doctor.email if doctor is not None else None,
        )

    simulated = not result.get("success")
    if simulated:
        logger.warning(f"Quiz result email simulated: {result.get('error')}")

    log_communication(
        db,
        "quiz_result_email",
        content["subject"],
        CommunicationStatus.SENT.value,
        lead_id=request.lead_id,
        metadata={
            "quiz_type": request.quiz_type,
            "score": request.score,
            "email_id": result.get("id"),
            "simulated": simulated,
        },
    )

    return {
        "success": True,
        "simulated": simulated,
        "email_id": result.get("id"),
        "message": "Quiz results email sent" if not simulated else "Quiz results email simulated",
    }


# =============================================================================
# Twilio Credentials
# =============================================================================

@router.post(
    "/test-twilio",
    summary="Test Twilio Credentials",
    description="Validate Twilio credentials by fetching the account.",
    responses={400: {"description": "Invalid credentials", "model": ErrorResponse}},
    dependencies=[Depends(get_current_doctor)],
)
async def test_twilio(request: TwilioTestRequest) -> Dict[str, Any]:
    result = SMSService(
        account_sid=request.account_sid,
        auth_token=request.auth_token,
        from_number=request.phone_number,
    ).verify_account()

    if not result.get("success"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.get("error") or "Invalid Twilio credentials",
        )

    return {
        "success": True,
        "message": "Twilio credentials are valid",
        "account_status": result.get("account_status"),
        "phone_number": request.phone_number,
    }


@router.get(
    "/templates",
    summary="Message Templates",
    description="Built-in SMS bodies and email subjects.",
)
async def list_templates() -> Dict[str, Any]:
    return {
        "sms": [{"name": name, "body": body} for name, body in SMS_TEMPLATES.items()],
        "email": [{"name": name, "subject": subject} for name, subject in EMAIL_SUBJECTS.items()],
    }
