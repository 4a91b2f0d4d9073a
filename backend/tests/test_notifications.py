from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from patientpathway.core.security import encrypt_secret
from patientpathway.models.communication import LeadCommunication
from patientpathway.services.notifications import NotificationFanout, log_communication


def email_service(configured=True, result=None):
    service = MagicMock()
    service.is_configured = configured
    service.send_email.return_value = result or {"success": True, "id": "email_123"}
    return service


def sms_factory(result=None, error=None):
    sender = MagicMock()
    if error is not None:
        sender.send_sms.side_effect = error
    else:
        sender.send_sms.return_value = result or {"success": True, "message_sid": "SM123"}
    factory = MagicMock(return_value=sender)
    return factory, sender


@pytest.fixture
def twilio_doctor(doctor, db_session):
    doctor.twilio_account_sid = "AC123"
    doctor.twilio_auth_token_encrypted = encrypt_secret("secret-token")
    doctor.twilio_phone_number = "+15555550199"
    db_session.commit()
    return doctor


def test_all_four_channels_attempted_in_order(db_session, twilio_doctor, make_lead):
    lead = make_lead()
    factory, sender = sms_factory()
    fanout = NotificationFanout(db_session, email_service=email_service(), sms_factory=factory)

    attempts = fanout.notify_new_lead(lead, twilio_doctor)

    assert [a.type for a in attempts] == ["welcome_sms", "welcome_email", "doctor_sms", "doctor_email"]
    assert all(a.status == "sent" for a in attempts)
    assert [call.args[0] for call in sender.send_sms.call_args_list] == [lead.phone, twilio_doctor.phone]

    rows = db_session.query(LeadCommunication).filter(LeadCommunication.lead_id == lead.id).all()
    assert sorted(row.communication_type for row in rows) == sorted(a.type for a in attempts)


def test_without_twilio_only_emails_are_attempted(db_session, doctor, make_lead):
    lead = make_lead()
    factory, sender = sms_factory()
    emails = email_service()
    fanout = NotificationFanout(db_session, email_service=emails, sms_factory=factory)

    attempts = fanout.notify_new_lead(lead, doctor)

    assert [a.type for a in attempts] == ["welcome_email", "doctor_email"]
    factory.assert_not_called()
    sender.send_sms.assert_not_called()
    assert emails.send_email.call_count == 2


def test_nothing_configured_makes_no_attempts(db_session, doctor, make_lead):
    lead = make_lead()
    fanout = NotificationFanout(db_session, email_service=email_service(configured=False))

    assert fanout.notify_new_lead(lead, doctor) == []
    assert db_session.query(LeadCommunication).count() == 0


def test_sms_exception_is_recorded_and_later_attempts_run(db_session, twilio_doctor, make_lead):
    lead = make_lead()
    factory, _ = sms_factory(error=RuntimeError("twilio down"))
    fanout = NotificationFanout(db_session, email_service=email_service(), sms_factory=factory)

    attempts = fanout.notify_new_lead(lead, twilio_doctor)

    by_type = {a.type: a for a in attempts}
    assert by_type["welcome_sms"].status == "failed"
    assert by_type["welcome_sms"].metadata["error"] == "twilio down"
    assert by_type["welcome_email"].status == "sent"
    assert by_type["doctor_sms"].status == "failed"
    assert by_type["doctor_email"].status == "sent"


def test_provider_failure_result_is_recorded_as_failed(db_session, doctor, make_lead):
    lead = make_lead()
    emails = email_service(result={"success": False, "error": "domain not verified"})
    fanout = NotificationFanout(db_session, email_service=emails)

    attempts = fanout.notify_new_lead(lead, doctor)

    assert {a.status for a in attempts} == {"failed"}
    assert attempts[0].metadata["error"] == "domain not verified"


def test_lead_without_contact_details_skips_patient_channels(db_session, twilio_doctor, make_lead):
    lead = make_lead(email=None, phone=None)
    factory, _ = sms_factory()
    fanout = NotificationFanout(db_session, email_service=email_service(), sms_factory=factory)

    attempts = fanout.notify_new_lead(lead, twilio_doctor)

    assert [a.type for a in attempts] == ["doctor_sms", "doctor_email"]


def test_audit_insert_failure_is_swallowed(db_session, doctor, make_lead):
    lead = make_lead()
    fanout = NotificationFanout(db_session, email_service=email_service())

    original_commit = db_session.commit

    def failing_commit():
        raise OperationalError("INSERT INTO lead_communications", {}, Exception("database is locked"))

    db_session.commit = failing_commit
    try:
        attempts = fanout.notify_new_lead(lead, doctor)
    finally:
        db_session.commit = original_commit

    assert len(attempts) == 2
    assert db_session.query(LeadCommunication).count() == 0


def test_log_communication_writes_row(db_session, make_lead):
    lead = make_lead()

    assert log_communication(db_session, "sms", "hello", "sent", lead_id=lead.id, metadata={"message_sid": "SM1"})

    row = db_session.query(LeadCommunication).one()
    assert row.communication_type == "sms"
    assert row.details == {"message_sid": "SM1"}
