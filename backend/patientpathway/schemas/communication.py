"""
Communication Pydantic schemas.

Request bodies for dashboard sends, the Resend relay, doctor alerts, patient
result emails and the Twilio credential check.
"""

from typing import List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


Recipients = Union[EmailStr, List[EmailStr]]


class SendCommunicationRequest(BaseModel):
    """A message a doctor sends to one of their leads."""

    lead_id: UUID = Field(..., description="Lead to contact")
    type: Literal["sms", "email"] = Field(..., description="Channel")
    message: str = Field(..., min_length=1, max_length=5000)
    subject: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Email subject (defaults to 'Message from Dr. <name>')"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "lead_id": "3f2b9c7e-1d2a-4a8b-9f0e-5c6d7e8f9a0b",
                "type": "email",
                "subject": "Following up on your assessment",
                "message": "Hi Jane, I reviewed your results and would like to schedule a visit.",
            }
        }
    }


class CommunicationResult(BaseModel):
    success: bool
    message: str
    communication_type: str
    provider_id: Optional[str] = None
    lead_status: Optional[str] = None


class EmailRelayRequest(BaseModel):
    """Raw email relay through Resend."""

    to: Recipients
    subject: str = Field(..., min_length=1, max_length=300)
    html: str = Field(..., min_length=1)
    text: Optional[str] = Field(default=None, description="Defaults to the HTML with tags stripped")
    from_email: Optional[str] = Field(default=None, alias="from")
    reply_to: Optional[EmailStr] = None
    cc: Optional[Recipients] = None
    bcc: Optional[Recipients] = None

    model_config = {"populate_by_name": True}


class DoctorNotificationRequest(BaseModel):
    """New-lead alert for the doctor who owns a stored lead."""

    lead_id: UUID = Field(..., description="Stored lead to describe")


class QuizResultEmailRequest(BaseModel):
    """Patient-facing result email after a quiz."""

    user_email: EmailStr
    user_name: str = Field(..., min_length=1)
    quiz_type: str
    score: int
    lead_id: Optional[UUID] = None
    doctor_id: Optional[UUID] = None


class TwilioTestRequest(BaseModel):
    account_sid: str = Field(..., min_length=1)
    auth_token: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
