"""
Pydantic validation schemas for PatientPathway AI.

Contains request/response DTOs with validation rules.
These schemas enforce data integrity at API boundaries.
"""

from .lead import (
    LeadResponse,
    LeadListResponse,
    LeadSubmitResponse,
    LeadStatusUpdate,
    WebhookResponse,
)
from .common import (
    HealthResponse,
    ErrorResponse,
    SuccessResponse,
)
from .communication import (
    SendCommunicationRequest,
    CommunicationResult,
    EmailRelayRequest,
    DoctorNotificationRequest,
    QuizResultEmailRequest,
    TwilioTestRequest,
)
from .profile import DoctorProfileUpdate, ProfileCountResponse
from .contact import ContactCreate, ContactUpdate, ContactResponse
from .quiz import (
    QuizScoreRequest,
    QuizScoreResponse,
    CustomQuizCreate,
    CustomQuizUpdate,
    CustomQuizResponse,
    QuizIncidentCreate,
    QuizIncidentResponse,
    QuizGenerationRequest,
    QuizDraftResponse,
)
from .assistant import AssistantRequest, AssistantResponse, ShortUrlRequest, ShortUrlResponse

__all__ = [
    # Lead schemas
    "LeadResponse",
    "LeadListResponse",
    "LeadSubmitResponse",
    "LeadStatusUpdate",
    "WebhookResponse",
    # Common schemas
    "HealthResponse",
    "ErrorResponse",
    "SuccessResponse",
    # Communication schemas
    "SendCommunicationRequest",
    "CommunicationResult",
    "EmailRelayRequest",
    "DoctorNotificationRequest",
    "QuizResultEmailRequest",
    "TwilioTestRequest",
    # Profile and contact schemas
    "DoctorProfileUpdate",
    "ProfileCountResponse",
    "ContactCreate",
    "ContactUpdate",
    "ContactResponse",
    # Quiz schemas
    "QuizScoreRequest",
    "QuizScoreResponse",
    "CustomQuizCreate",
    "CustomQuizUpdate",
    "CustomQuizResponse",
    "QuizIncidentCreate",
    "QuizIncidentResponse",
    "QuizGenerationRequest",
    "QuizDraftResponse",
    # Assistant and sharing
    "AssistantRequest",
    "AssistantResponse",
    "ShortUrlRequest",
    "ShortUrlResponse",
]
