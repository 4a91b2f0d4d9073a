"""
Lead Pydantic schemas for responses and dashboard updates.

Submissions are accepted as loose JSON and validated in the lead service so
a missing field yields a 400 naming that field; these schemas describe what
goes back out.
"""

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..models.lead import LeadStatus


class LeadResponse(BaseModel):
    """Stored lead as returned to the dashboard and quiz pages."""

    id: UUID
    doctor_id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    quiz_type: str
    custom_quiz_id: Optional[UUID] = None
    score: int
    answers: Optional[Any] = None
    lead_source: Optional[str] = None
    lead_status: LeadStatus
    incident_source: Optional[str] = None
    share_key: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    is_public_submission: bool = False
    submitted_at: datetime
    created_at: Optional[datetime] = None


class LeadSubmitResponse(BaseModel):
    success: bool = Field(default=True)
    data: LeadResponse

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "data": {
                    "id": "3f2b9c7e-1d2a-4a8b-9f0e-5c6d7e8f9a0b",
                    "doctor_id": "9a8b7c6d-5e4f-4a3b-2c1d-0e9f8a7b6c5d",
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                    "phone": "+15555550123",
                    "quiz_type": "NOSE",
                    "score": 12,
                    "lead_status": "NEW",
                    "is_public_submission": True,
                    "submitted_at": "2024-01-15T10:30:00Z",
                },
            }
        }
    }


class WebhookLead(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    quiz_type: str
    score: int
    submitted_at: datetime
    lead_source: str
    share_key: Optional[str] = None


class WebhookDoctor(BaseModel):
    id: UUID
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    clinic_name: Optional[str] = None
    location: Optional[str] = None


class WebhookPayload(BaseModel):
    lead: WebhookLead
    doctor: Optional[WebhookDoctor] = None
    quiz_data: Any = Field(default_factory=list)
    webhook_timestamp: datetime


class WebhookResponse(BaseModel):
    """Lead payload handed back to external automation tools."""

    success: bool = Field(default=True)
    data: WebhookPayload
    message: str = Field(default="Lead webhook processed successfully")
    webhook_id: UUID


class LeadListResponse(BaseModel):
    items: List[LeadResponse]
    total: int = Field(..., ge=0)


class LeadStatusUpdate(BaseModel):
    """Pipeline move from the dashboard."""

    status: LeadStatus = Field(..., description="NEW, CONTACTED or SCHEDULED")
    scheduled_date: Optional[datetime] = Field(
        default=None,
        description="Appointment time; only valid with SCHEDULED"
    )
