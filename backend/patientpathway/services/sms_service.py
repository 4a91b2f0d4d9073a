"""
SMS service for sending text messages through a doctor's own Twilio account.

Provides:
- SMS sending with per-doctor credentials
- Credential validation (account lookup)
- SMS templates
"""

import logging
from typing import Any, Dict, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from ..core.security import mask_phone
from ..models.doctor_profile import DoctorProfile


logger = logging.getLogger(__name__)


class SMSService:
    """Sends SMS with one Twilio account's credentials."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        client: Optional[Client] = None,
    ):
        self.account_sid = account_sid
        self.from_number = from_number

        if client is not None:
            self.client = client
        elif account_sid and auth_token:
            self.client = Client(account_sid, auth_token)
        else:
            self.client = None
            logger.warning("Twilio credentials not configured - SMS service disabled")

    @classmethod
    def for_doctor(cls, doctor: DoctorProfile) -> "SMSService":
        return cls(
            account_sid=doctor.twilio_account_sid,
            auth_token=doctor.twilio_auth_token,
            from_number=doctor.twilio_phone_number,
        )

    @property
    def is_configured(self) -> bool:
        return self.client is not None and bool(self.from_number)

    def send_sms(self, to_number: str, message: str) -> Dict[str, Any]:
        """
        Send an SMS message via Twilio.

        Args:
            to_number: Recipient phone number (E.164 format; bare numbers get +1)
            message: SMS message content

        Returns:
            Dict with success status, message SID, and error details
        """
        try:
            if not to_number.startswith("+"):
                to_number = f"+1{to_number}"

            if not self.is_configured:
                logger.warning(f"Twilio not configured - SMS not sent to {mask_phone(to_number)}")
                return {
                    "success": False,
                    "error": "Twilio not configured",
                    "message": "SMS not sent (Twilio credentials missing)",
                }

            message_obj = self.client.messages.create(
                body=message,
                from_=self.from_number,
                to=to_number,
            )

            logger.info(f"SMS sent via Twilio to {mask_phone(to_number)} (SID: {message_obj.sid})")

            return {
                "success": True,
                "message_sid": message_obj.sid,
                "status": message_obj.status,
                "message": f"SMS sent successfully (SID: {message_obj.sid})",
            }

        except TwilioRestException as e:
            logger.error(f"Twilio error sending SMS to {mask_phone(to_number)}: {e.msg} (Code: {e.code})")
            return {
                "success": False,
                "error": e.msg,
                "error_code": e.code,
                "message": f"Twilio error: {e.msg}",
            }

        except Exception as e:
            logger.error(f"Failed to send SMS to {mask_phone(to_number)}: {e}")
            return {
                "success": False,
                "error": str(e),
                "message": f"Failed to send SMS: {str(e)}",
            }

    def verify_account(self) -> Dict[str, Any]:
        """
        Validate the credentials by fetching the Twilio account.

        Returns:
            Dict with success status and the account status reported by Twilio
        """
        if self.client is None:
            return {"success": False, "error": "Twilio credentials not configured"}

        try:
            account = self.client.api.v2010.accounts(self.account_sid).fetch()
            return {"success": True, "account_status": account.status}
        except TwilioRestException as e:
            logger.warning(f"Twilio credential check failed for {self.account_sid}: {e.msg}")
            return {"success": False, "error": "Invalid Twilio credentials"}
        except Exception as e:
            logger.error(f"Twilio credential check error: {e}")
            return {"success": False, "error": str(e)}


# =============================================================================
# SMS Templates
# =============================================================================

SMS_TEMPLATES = {
    "welcome_sms": (
        "Hi {patient_name}, thank you for completing the {quiz_title} with "
        "{doctor_name}. Our team will review your results and reach out soon."
    ),
    "doctor_sms": (
        "New lead: {patient_name} completed the {quiz_title} (score {score}). "
        "View it in your PatientPathway dashboard."
    ),
}


def render_sms_template(template_name: str, **kwargs) -> str:
    """
    Render SMS template with variables.

    Args:
        template_name: Template key from SMS_TEMPLATES
        **kwargs: Template variables

    Returns:
        Rendered SMS message

    Raises:
        KeyError: If the template does not exist
    """
    return SMS_TEMPLATES[template_name].format(**kwargs)
