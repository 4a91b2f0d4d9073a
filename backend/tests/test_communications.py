from unittest.mock import MagicMock, patch

import pytest

from patientpathway.core.security import encrypt_secret
from patientpathway.models.communication import EmailLog, LeadCommunication
from patientpathway.models.lead import LeadStatus, QuizLead
from patientpathway.services.email_templates import (
    build_new_lead_alert,
    build_quiz_result_email,
    get_alert_severity,
    get_result_message,
)


@pytest.fixture
def resend_ok():
    service = MagicMock()
    service.is_configured = True
    service.send_email.return_value = {"success": True, "id": "re_123"}
    with patch("patientpathway.api.communications.get_email_service", return_value=service):
        yield service


class TestTemplates:
    @pytest.mark.parametrize("score,severity", [(80, "severe"), (79, "moderate"), (60, "moderate"), (40, "mild"), (39, "normal")])
    def test_alert_severity(self, score, severity):
        assert get_alert_severity(score) == severity

    def test_result_message_bands(self):
        assert "severe" in get_result_message(8)[0]
        assert "moderate" in get_result_message(5)[0]
        assert "mild" in get_result_message(4)[0]

    def test_new_lead_alert_contents(self, make_lead, doctor):
        lead = make_lead(score=85, answers=[{"question": "Nasal blockage", "answer": "4 - Severe"}])
        email = build_new_lead_alert(lead, doctor, app_url="https://app.example.com")

        assert email["subject"] == "New Lead: Jane Doe - NOSE Assessment (Score: 85)"
        assert "SEVERE" in email["html"]
        assert "Nasal blockage" in email["html"]
        assert "https://app.example.com/portal?tab=dashboard" in email["text"]

    def test_patient_values_are_escaped(self):
        email = build_quiz_result_email("<script>x</script>", "NOSE", 3)
        assert "<script>x</script>" not in email["html"]


class TestSendCommunication:
    def test_email_requires_prefix(self, client, auth_headers, make_lead):
        lead = make_lead()
        response = client.post(
            "/api/communications/send",
            json={"lead_id": str(lead.id), "type": "email", "message": "Hello"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        assert "prefix" in response.json()["detail"]

    def test_email_send_logs_and_marks_contacted(self, client, auth_headers, make_lead, doctor, db_session, resend_ok):
        doctor.email_prefix = "rivera"
        db_session.commit()
        lead = make_lead()

        response = client.post(
            "/api/communications/send",
            json={"lead_id": str(lead.id), "type": "email", "subject": "Your results", "message": "Hello Jane"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["lead_status"] == "CONTACTED"

        kwargs = resend_ok.send_email.call_args.kwargs
        assert kwargs["from_email"] == "Dr. Alex Rivera <dr.rivera@patientpathway.ai>"
        assert kwargs["reply_to"] == doctor.email
        assert kwargs["subject"] == "Your results"

        db_session.expire_all()
        assert db_session.get(QuizLead, lead.id).lead_status == LeadStatus.CONTACTED
        assert db_session.query(EmailLog).one().resend_id == "re_123"
        assert db_session.query(LeadCommunication).one().status == "sent"

    def test_contacting_a_new_lead_clears_cached_analytics(
        self, client, auth_headers, make_lead, doctor, db_session, resend_ok, redis_client
    ):
        doctor.email_prefix = "rivera"
        db_session.commit()
        lead = make_lead()
        client.get("/api/analytics/summary", headers=auth_headers)
        assert redis_client.get(f"cached_analytics_{doctor.id}") is not None

        client.post(
            "/api/communications/send",
            json={"lead_id": str(lead.id), "type": "email", "message": "Hello Jane"},
            headers=auth_headers,
        )

        assert redis_client.get(f"cached_analytics_{doctor.id}") is None
        summary = client.get("/api/analytics/summary", headers=auth_headers).json()
        assert summary["status_distribution"]["CONTACTED"] == 1

    def test_sms_requires_twilio(self, client, auth_headers, make_lead):
        lead = make_lead()
        response = client.post(
            "/api/communications/send",
            json={"lead_id": str(lead.id), "type": "sms", "message": "Hello"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        assert "Twilio" in response.json()["detail"]

    def test_sms_send_uses_doctor_credentials(self, client, auth_headers, make_lead, doctor, db_session):
        doctor.twilio_account_sid = "AC123"
        doctor.twilio_auth_token_encrypted = encrypt_secret("secret-token")
        doctor.twilio_phone_number = "+15555550199"
        db_session.commit()
        lead = make_lead(lead_status=LeadStatus.SCHEDULED)

        with patch("patientpathway.services.sms_service.Client") as twilio_client:
            twilio_client.return_value.messages.create.return_value = MagicMock(sid="SM1", status="queued")
            response = client.post(
                "/api/communications/send",
                json={"lead_id": str(lead.id), "type": "sms", "message": "See you soon"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        twilio_client.assert_called_once_with("AC123", "secret-token")
        create_kwargs = twilio_client.return_value.messages.create.call_args.kwargs
        assert create_kwargs["to"] == lead.phone
        assert create_kwargs["from_"] == "+15555550199"
        # only NEW leads move to CONTACTED
        assert response.json()["lead_status"] == "SCHEDULED"

    def test_unknown_lead_is_404(self, client, auth_headers):
        response = client.post(
            "/api/communications/send",
            json={"lead_id": "00000000-0000-0000-0000-000000000000", "type": "sms", "message": "Hi"},
            headers=auth_headers,
        )
        assert response.status_code == 404


class TestEmailRelay:
    def test_defaults_sender_and_plain_text(self, client, auth_headers, doctor, db_session, resend_ok):
        response = client.post(
            "/api/communications/email",
            json={"to": "patient@example.com", "subject": "Hi", "html": "<p>Hello <b>there</b></p>"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        kwargs = resend_ok.send_email.call_args.kwargs
        assert kwargs["from_email"] == "noreply@patientpathway.ai"
        assert kwargs["reply_to"] == doctor.email
        assert kwargs["text"] == "Hello there"
        assert db_session.query(EmailLog).one().status == "sent"

    def test_resend_error_is_500(self, client, auth_headers, resend_ok):
        resend_ok.send_email.return_value = {"success": False, "error": "Invalid API key"}
        response = client.post(
            "/api/communications/email",
            json={"to": ["a@example.com"], "subject": "Hi", "html": "<p>x</p>"},
            headers=auth_headers,
        )
        assert response.status_code == 500
        assert response.json()["detail"] == "Invalid API key"


class TestAutomatedEmails:
    def test_doctor_notification(self, client, make_lead, doctor, resend_ok):
        lead = make_lead(score=65)
        response = client.post("/api/communications/doctor-notification", json={"lead_id": str(lead.id)})

        assert response.status_code == 200
        kwargs = resend_ok.send_email.call_args.kwargs
        assert kwargs["to"] == doctor.email
        assert "MODERATE" in kwargs["html"]

    def test_quiz_result_email_is_simulated_without_resend(self, client, db_session):
        response = client.post(
            "/api/communications/quiz-result-email",
            json={"user_email": "jane@example.com", "user_name": "Jane", "quiz_type": "NOSE", "score": 9},
        )

        assert response.status_code == 200
        assert response.json()["simulated"] is True
        row = db_session.query(LeadCommunication).one()
        assert row.communication_type == "quiz_result_email"
        assert row.details["simulated"] is True

    def test_quiz_result_email_sent(self, client, resend_ok, doctor):
        response = client.post(
            "/api/communications/quiz-result-email",
            json={
                "user_email": "jane@example.com",
                "user_name": "Jane",
                "quiz_type": "NOSE",
                "score": 9,
                "doctor_id": str(doctor.id),
            },
        )

        assert response.json() == {
            "success": True,
            "simulated": False,
            "email_id": "re_123",
            "message": "Quiz results email sent",
        }
        assert resend_ok.send_email.call_args.kwargs["subject"] == "Your Nasal Obstruction Symptom Evaluation Results"


class TestTwilioCheck:
    def test_valid_credentials(self, client, auth_headers):
        with patch("patientpathway.api.communications.SMSService") as service:
            service.return_value.verify_account.return_value = {"success": True, "account_status": "active"}
            response = client.post(
                "/api/communications/test-twilio",
                json={"account_sid": "AC123", "auth_token": "token", "phone_number": "+15555550199"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert response.json()["account_status"] == "active"
        assert response.json()["phone_number"] == "+15555550199"

    def test_invalid_credentials(self, client, auth_headers):
        with patch("patientpathway.api.communications.SMSService") as service:
            service.return_value.verify_account.return_value = {"success": False, "error": "Invalid Twilio credentials"}
            response = client.post(
                "/api/communications/test-twilio",
                json={"account_sid": "AC123", "auth_token": "bad"},
                headers=auth_headers,
            )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid Twilio credentials"


def test_templates_listing(client):
    body = client.get("/api/communications/templates").json()
    assert {t["name"] for t in body["sms"]} == {"welcome_sms", "doctor_sms"}
    assert "quiz_result" in {t["name"] for t in body["email"]}
