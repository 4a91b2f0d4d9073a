"""
SQLAlchemy ORM models for PatientPathway AI.

Contains database table definitions and relationships.
"""

from .doctor_profile import DoctorProfile
from .lead import QuizLead, LeadStatus, QuizType
from .communication import LeadCommunication, EmailLog, CommunicationStatus
from .contact import Contact, ContactType
from .quiz import CustomQuiz, QuizIncident

__all__ = [
    "DoctorProfile",
    # Lead model and enums
    "QuizLead",
    "LeadStatus",
    "QuizType",
    # Audit trail
    "LeadCommunication",
    "EmailLog",
    "CommunicationStatus",
    # Dashboard CRUD
    "Contact",
    "ContactType",
    "CustomQuiz",
    "QuizIncident",
]
