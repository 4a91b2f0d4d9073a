"""
Business logic services for PatientPathway AI.

Contains all business logic separated from the API layer.
Services handle scoring, lead intake, notifications, caching and
third-party integrations.
"""

from .quiz_scoring import calculate_quiz_score, QuizResult
from .cache import CacheService, get_cache
from .notifications import NotificationFanout, run_lead_fanout

__all__ = [
    "calculate_quiz_score",
    "QuizResult",
    "CacheService",
    "get_cache",
    "NotificationFanout",
    "run_lead_fanout",
]
