"""
Quiz-related database models: doctor-built custom quizzes and quiz incidents
(named lead sources such as a campaign or event).
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB

from ..core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomQuiz(Base):
    """
    Doctor-authored quiz.

    questions: [{id, text, type, options: [{text, value}], required}]
    scoring: {mild_threshold, moderate_threshold, severe_threshold} as percentages
    """

    __tablename__ = "custom_quizzes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("doctor_profiles.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="custom")
    questions = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    scoring = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    max_score = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class QuizIncident(Base):
    __tablename__ = "quiz_incidents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    doctor_id = Column(Uuid, ForeignKey("doctor_profiles.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
