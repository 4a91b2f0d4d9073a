"""
Shared fixtures: in-memory SQLite database, fakeredis-backed cache,
FastAPI TestClient and Supabase-style bearer tokens.
"""

import os

# Settings are read at import time, so the environment is fixed first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RESEND_API_KEY"] = ""
os.environ["OPENROUTER_API_KEY"] = "test-openrouter-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-supabase-jwt-secret"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["APP_URL"] = "https://app.example.com"

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from patientpathway.core.config import settings
from patientpathway.core.database import Base, SessionLocal, init_db
from patientpathway.main import app
from patientpathway.models.doctor_profile import DoctorProfile
from patientpathway.models.lead import LeadStatus, QuizLead
from patientpathway.services.cache import CacheService, get_cache
from patientpathway.services.profiles import get_or_create_doctor_profile


init_db()


def make_token(user_id: str, email: str = "doctor@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "aud": settings.supabase_jwt_audience,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        **claims,
    }
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return CacheService(client=redis_client)


@pytest.fixture
def client(cache):
    app.dependency_overrides[get_cache] = lambda: cache
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def doctor(db_session) -> DoctorProfile:
    profile = get_or_create_doctor_profile(db_session, "user-1", "doctor@example.com")
    profile.first_name = "Alex"
    profile.last_name = "Rivera"
    profile.clinic_name = "Rivera ENT"
    profile.phone = "+15555550100"
    db_session.commit()
    return profile


@pytest.fixture
def auth_headers(doctor):
    return {"Authorization": f"Bearer {make_token(doctor.user_id, doctor.email)}"}


@pytest.fixture
def make_lead(db_session, doctor):
    """Insert a lead for the fixture doctor."""

    def _make(**overrides) -> QuizLead:
        values = {
            "doctor_id": doctor.id,
            "name": "Jane Doe",
            "email": "jane@example.com",
            "phone": "+15555550123",
            "quiz_type": "NOSE",
            "score": 12,
            "lead_status": LeadStatus.NEW,
            "submitted_at": datetime.now(timezone.utc),
        }
        values.update(overrides)
        lead = QuizLead(**values)
        db_session.add(lead)
        db_session.commit()
        return lead

    return _make
