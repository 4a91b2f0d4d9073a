"""
API route controllers for PatientPathway AI.

Contains FastAPI routers for different endpoints.
Routes handle HTTP requests and delegate to services for business logic.
"""

from .health import router as health_router
from .leads import router as leads_router
from .communications import router as communications_router
from .analytics import router as analytics_router
from .profiles import router as profiles_router
from .contacts import router as contacts_router
from .quizzes import router as quizzes_router
from .assistant import ai_router, share_router

__all__ = [
    "health_router",
    "leads_router",
    "communications_router",
    "analytics_router",
    "profiles_router",
    "contacts_router",
    "quizzes_router",
    "ai_router",
    "share_router",
]
