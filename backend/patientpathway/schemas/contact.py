"""
Contact schemas for a doctor's saved email and SMS recipients.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ..models.contact import ContactType


class ContactBase(BaseModel):
    type: ContactType = Field(..., description="email or sms")
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=30)


class ContactCreate(ContactBase):
    @model_validator(mode="after")
    def check_channel_address(self) -> "ContactCreate":
        if self.type == ContactType.EMAIL and not self.email:
            raise ValueError("email is required for email contacts")
        if self.type == ContactType.SMS and not self.phone:
            raise ValueError("phone is required for sms contacts")
        return self


class ContactUpdate(BaseModel):
    type: Optional[ContactType] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=30)


class ContactResponse(ContactBase):
    id: UUID
    doctor_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
