"""
Doctor profile schemas.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DoctorProfileUpdate(BaseModel):
    """
    Fields a doctor may change from the settings page.

    Omitted fields are left untouched. An empty twilio_auth_token clears the
    stored token.
    """

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=30)
    specialty: Optional[str] = Field(default=None, max_length=100)
    clinic_name: Optional[str] = Field(default=None, max_length=200)
    location: Optional[str] = Field(default=None, max_length=200)
    website: Optional[str] = Field(default=None, max_length=255)
    logo_url: Optional[str] = None
    avatar_url: Optional[str] = None
    email_prefix: Optional[str] = Field(
        default=None,
        max_length=64,
        pattern=r"^[a-z0-9._-]*$",
        description="Local part of dr.<prefix>@<domain> sender addresses"
    )
    access_control: Optional[bool] = None
    twilio_account_sid: Optional[str] = Field(default=None, max_length=64)
    twilio_auth_token: Optional[str] = Field(default=None, max_length=128)
    twilio_phone_number: Optional[str] = Field(default=None, max_length=30)

    model_config = {
        "json_schema_extra": {
            "example": {
                "first_name": "Alex",
                "last_name": "Rivera",
                "clinic_name": "Rivera ENT",
                "email_prefix": "rivera",
                "twilio_account_sid": "AC0123456789abcdef0123456789abcdef",
                "twilio_auth_token": "your-auth-token",
                "twilio_phone_number": "+15555550100",
            }
        }
    }


class ProfileCountResponse(BaseModel):
    user_id: str
    count: int = Field(..., ge=0)
