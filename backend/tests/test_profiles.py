from datetime import datetime, timezone

from patientpathway.models.doctor_profile import DoctorProfile
from patientpathway.services.profiles import count_profiles, get_or_create_doctor_profile

from conftest import make_token


def test_first_access_creates_default_profile(db_session):
    profile = get_or_create_doctor_profile(db_session, "new-user", "new@example.com")

    assert profile.first_name == "Doctor"
    assert profile.last_name == "User"
    assert profile.access_control is True
    assert profile.email == "new@example.com"
    assert len(profile.doctor_id) == 6 and profile.doctor_id.isdigit()
    assert count_profiles(db_session, "new-user") == 1


def test_oldest_profile_wins_and_duplicates_are_deleted(db_session):
    for day, name in ((3, "Third"), (1, "First"), (2, "Second")):
        db_session.add(DoctorProfile(
            user_id="dup-user",
            first_name=name,
            created_at=datetime(2024, 1, day, tzinfo=timezone.utc),
        ))
    db_session.commit()

    profile = get_or_create_doctor_profile(db_session, "dup-user")

    assert profile.first_name == "First"
    assert count_profiles(db_session, "dup-user") == 1


def test_get_me_is_cached(client, auth_headers, doctor, redis_client):
    response = client.get("/api/profiles/me", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == str(doctor.id)
    assert body["twilio_configured"] is False
    assert "twilio_auth_token" not in body
    assert redis_client.get(f"cached_doctor_profile_{doctor.id}") is not None


def test_update_encrypts_token_and_clears_cache(client, auth_headers, doctor, db_session, redis_client):
    client.get("/api/profiles/me", headers=auth_headers)
    redis_client.set(f"cached_ai_content_NOSE_{doctor.id}", "stale")

    response = client.put(
        "/api/profiles/me",
        json={
            "clinic_name": "Rivera Sinus Center",
            "twilio_account_sid": "AC123",
            "twilio_auth_token": "secret-token",
            "twilio_phone_number": "+15555550199",
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["clinic_name"] == "Rivera Sinus Center"
    assert response.json()["twilio_configured"] is True
    assert redis_client.get(f"cached_doctor_profile_{doctor.id}") is None
    assert redis_client.get(f"cached_ai_content_NOSE_{doctor.id}") is None

    db_session.expire_all()
    stored = db_session.get(DoctorProfile, doctor.id)
    assert stored.twilio_auth_token_encrypted != b"secret-token"
    assert stored.twilio_auth_token == "secret-token"


def test_delete_cache_endpoint(client, auth_headers, doctor, redis_client):
    client.get("/api/profiles/me", headers=auth_headers)

    response = client.delete("/api/profiles/me/cache", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert redis_client.get(f"cached_doctor_profile_{doctor.id}") is None


def test_count_endpoint(client, db_session):
    db_session.add(DoctorProfile(user_id="counted"))
    db_session.add(DoctorProfile(user_id="counted"))
    db_session.commit()

    headers = {"Authorization": f"Bearer {make_token('counted')}"}
    response = client.get("/api/profiles/count", headers=headers)

    assert response.json() == {"user_id": "counted", "count": 2}


def test_token_with_wrong_audience_is_rejected(client, doctor):
    headers = {"Authorization": f"Bearer {make_token(doctor.user_id, aud='someone-else')}"}
    assert client.get("/api/profiles/me", headers=headers).status_code == 401
