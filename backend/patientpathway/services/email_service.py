"""
Email service for sending transactional emails through Resend.

Provides:
- Email sending via the Resend API
- Doctor-prefixed sender addresses (dr.<prefix>@<domain>)
- Delivery audit rows in email_logs
"""

import logging
import re
from typing import Any, Dict, List, Optional, Union

import resend
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.communication import EmailLog
from ..models.doctor_profile import DoctorProfile


logger = logging.getLogger(__name__)

Recipients = Union[str, List[str]]

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(html: str) -> str:
    """Plain-text fallback: the HTML with every tag removed."""
    return _TAG_RE.sub("", html or "")


def doctor_sender_address(doctor: DoctorProfile) -> Optional[str]:
    """dr.<prefix>@<domain> for a doctor with an email prefix, else None."""
    if not doctor.email_prefix:
        return None
    return f"dr.{doctor.email_prefix}@{settings.email_domain}"


class EmailService:
    """Service for sending emails via Resend."""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.default_from = settings.notification_from_email

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def send_email(
        self,
        to: Recipients,
        subject: str,
        html: str,
        text: Optional[str] = None,
        from_email: Optional[str] = None,
        reply_to: Optional[str] = None,
        cc: Optional[Recipients] = None,
        bcc: Optional[Recipients] = None,
    ) -> Dict[str, Any]:
        """
        Send an email.

        Args:
            to: Recipient address or list of addresses
            subject: Email subject
            html: HTML email body
            text: Plain-text body (optional)
            from_email: Sender (defaults to the platform notification sender)
            reply_to: Reply-To address (optional)
            cc / bcc: Additional recipients (optional)

        Returns:
            Dict with success flag and the Resend id, or the error
        """
        if not self.is_configured:
            logger.warning("Resend API key not configured - email not sent")
            return {"success": False, "error": "RESEND_API_KEY not configured"}

        params: Dict[str, Any] = {
            "from": from_email or self.default_from,
            "to": to if isinstance(to, list) else [to],
            "subject": subject,
            "html": html,
        }
        if text:
            params["text"] = text
        if reply_to:
            params["reply_to"] = reply_to
        if cc:
            params["cc"] = cc
        if bcc:
            params["bcc"] = bcc

        try:
            resend.api_key = self.api_key
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Resend error sending '{subject}': {e}")
            return {"success": False, "error": str(e)}

        if response and "id" in response:
            logger.info(f"Email '{subject}' sent via Resend (id: {response['id']})")
            return {"success": True, "id": response["id"]}

        logger.error(f"Unexpected response from Resend: {response}")
        return {"success": False, "error": f"Unexpected response from Resend: {response}"}


def log_email(
    db: Session,
    doctor_id,
    recipient: Recipients,
    subject: str,
    result: Dict[str, Any],
) -> None:
    """Append an email_logs row. Failures are logged and rolled back."""
    entry = EmailLog(
        doctor_id=doctor_id,
        recipient_email=", ".join(recipient) if isinstance(recipient, list) else recipient,
        subject=subject,
        status="sent" if result.get("success") else "failed",
        resend_id=result.get("id"),
        error_message=result.get("error"),
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to write email log for '{subject}': {e}")


# Global email service instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
