from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

from patientpathway.models.lead import LeadStatus
from patientpathway.services.analytics import (
    calculate_trend_percentage,
    compute_lead_analytics,
    compute_weekly_trends,
)


# Wednesday
NOW = datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)


def lead(status=LeadStatus.NEW, quiz_type="NOSE", days_ago=0, naive=False):
    created_at = NOW - timedelta(days=days_ago)
    if naive:
        created_at = created_at.replace(tzinfo=None)
    return SimpleNamespace(lead_status=status, quiz_type=quiz_type, created_at=created_at)


class TestLeadAnalytics:
    def test_status_distribution(self):
        leads = [
            lead(LeadStatus.NEW),
            lead(LeadStatus.NEW),
            lead(LeadStatus.CONTACTED),
            lead(LeadStatus.SCHEDULED),
        ]
        result = compute_lead_analytics(leads, now=NOW)

        assert result["status_distribution"] == {"NEW": 2, "CONTACTED": 1, "SCHEDULED": 1}
        assert result["totals"]["total_leads"] == 4
        assert result["totals"]["conversion_rate"] == 25.0

    def test_empty_input_has_every_status(self):
        result = compute_lead_analytics([], now=NOW)

        assert result["status_distribution"] == {"NEW": 0, "CONTACTED": 0, "SCHEDULED": 0}
        assert result["totals"]["conversion_rate"] == 0.0
        assert [entry["name"] for entry in result["leads_by_status"]] == ["New", "Contacted", "Scheduled"]

    def test_daily_leads_cover_30_days_oldest_first(self):
        leads = [lead(days_ago=0), lead(days_ago=0), lead(days_ago=29), lead(days_ago=30)]
        daily = compute_lead_analytics(leads, now=NOW)["daily_leads"]

        assert len(daily) == 30
        assert daily[0]["date"] == "2024-02-13"
        assert daily[0]["count"] == 1
        assert daily[-1] == {"date": "2024-03-13", "label": "Mar 13", "count": 2}
        assert sum(day["count"] for day in daily) == 3

    def test_naive_timestamps_are_treated_as_utc(self):
        daily = compute_lead_analytics([lead(naive=True)], now=NOW)["daily_leads"]
        assert daily[-1]["count"] == 1

    def test_leads_by_quiz_type(self):
        leads = [lead(quiz_type="NOSE"), lead(quiz_type="NOSE"), lead(quiz_type="SNOT22")]
        by_type = compute_lead_analytics(leads, now=NOW)["leads_by_quiz_type"]

        assert {entry["name"]: entry["value"] for entry in by_type} == {"NOSE": 2, "SNOT22": 1}


class TestWeeklyTrends:
    def test_weeks_start_on_sunday(self):
        result = compute_weekly_trends([], now=NOW)

        assert len(result["weeks"]) == 6
        assert result["weeks"][-1]["week_start"] == "2024-03-10"
        assert result["weeks"][0]["week_start"] == "2024-02-04"

    def test_current_vs_previous_week(self):
        leads = [
            lead(LeadStatus.NEW, days_ago=0),
            lead(LeadStatus.SCHEDULED, days_ago=1),
            lead(LeadStatus.NEW, days_ago=5),
        ]
        result = compute_weekly_trends(leads, now=NOW)

        assert result["current_week"]["total"] == 2
        assert result["previous_week"]["total"] == 1
        assert result["trends"]["total"] == 100.0
        assert result["trends"]["scheduled"] == 100.0
        assert result["trends"]["new_leads"] == 0.0

    def test_trend_percentage(self):
        assert calculate_trend_percentage(0, 0) == 0.0
        assert calculate_trend_percentage(3, 0) == 100.0
        assert calculate_trend_percentage(5, 4) == 25.0
        assert calculate_trend_percentage(2, 4) == -50.0


def test_summary_endpoint_is_cached_per_doctor(client, auth_headers, make_lead, doctor, redis_client):
    make_lead(lead_status=LeadStatus.CONTACTED)

    first = client.get("/api/analytics/summary", headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["status_distribution"]["CONTACTED"] == 1
    assert redis_client.get(f"cached_analytics_{doctor.id}") is not None

    make_lead(lead_status=LeadStatus.SCHEDULED)
    cached = client.get("/api/analytics/summary", headers=auth_headers)
    assert cached.json()["status_distribution"]["SCHEDULED"] == 0

    refreshed = client.get("/api/analytics/summary", params={"refresh": "true"}, headers=auth_headers)
    assert refreshed.json()["status_distribution"]["SCHEDULED"] == 1


def test_trends_endpoint(client, auth_headers, make_lead):
    make_lead()
    response = client.get("/api/analytics/trends", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["current_week"]["total"] == 1


def test_status_change_shows_without_refresh(client, auth_headers, make_lead):
    lead = make_lead()

    before = client.get("/api/analytics/summary", headers=auth_headers).json()
    assert before["status_distribution"] == {"NEW": 1, "CONTACTED": 0, "SCHEDULED": 0}

    patched = client.patch(f"/api/leads/{lead.id}/status", json={"status": "CONTACTED"}, headers=auth_headers)
    assert patched.status_code == 200

    after = client.get("/api/analytics/summary", headers=auth_headers).json()
    assert after["status_distribution"] == {"NEW": 0, "CONTACTED": 1, "SCHEDULED": 0}


def test_new_submission_shows_in_cached_summary_and_trends(client, auth_headers, doctor):
    client.get("/api/analytics/summary", headers=auth_headers)
    client.get("/api/analytics/trends", params={"weeks": 4}, headers=auth_headers)

    submission = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "+15555550123",
        "quiz_type": "NOSE",
        "doctor_id": str(doctor.id),
        "score": 12,
    }
    with patch("patientpathway.api.leads.run_lead_fanout"):
        assert client.post("/api/leads/submit", json=submission).status_code == 200

    summary = client.get("/api/analytics/summary", headers=auth_headers).json()
    trends = client.get("/api/analytics/trends", params={"weeks": 4}, headers=auth_headers).json()
    assert summary["totals"]["total_leads"] == 1
    assert trends["current_week"]["total"] == 1
