"""
Dashboard analytics over a doctor's leads.

The lead set is read once (bounded by settings.lead_query_limit) and grouped
in Python: by status, by quiz type, per day over the last 30 days, and per
Sunday-start week for the trends view. Dates are bucketed in UTC.
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..models.lead import LeadStatus, QuizLead


logger = logging.getLogger(__name__)

DAILY_WINDOW_DAYS = 30

STATUS_CHART = (
    (LeadStatus.NEW, "New", "#3b82f6"),
    (LeadStatus.CONTACTED, "Contacted", "#eab308"),
    (LeadStatus.SCHEDULED, "Scheduled", "#22c55e"),
)


# =============================================================================
# Helpers
# =============================================================================

def calculate_trend_percentage(current: int, previous: int) -> float:
    """Calculate trend percentage change."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round(((current - previous) / previous) * 100, 1)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _status_key(lead: QuizLead) -> Optional[str]:
    status = lead.lead_status
    if status is None:
        return None
    return status.value if isinstance(status, LeadStatus) else str(status)


def _short_label(day: date) -> str:
    """'Mar 5' style label used on the chart axis."""
    return f"{day.strftime('%b')} {day.day}"


# =============================================================================
# Summary
# =============================================================================

def status_distribution(leads: Iterable[QuizLead]) -> Dict[str, int]:
    """Lead counts per pipeline status; every status is always present."""
    counts = Counter(_status_key(lead) for lead in leads)
    return {status.value: counts.get(status.value, 0) for status in LeadStatus}


def compute_lead_analytics(
    leads: Iterable[QuizLead],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Aggregate leads for the analytics page.

    Args:
        leads: The doctor's leads
        now: Reference time (defaults to the current UTC time)

    Returns:
        Dict with status_distribution, leads_by_status, leads_by_quiz_type,
        daily_leads and totals
    """
    leads = list(leads)
    now = _as_utc(now or datetime.now(timezone.utc))

    distribution = status_distribution(leads)

    quiz_counts: Counter = Counter(lead.quiz_type for lead in leads)
    leads_by_quiz_type = [{"name": name, "value": count} for name, count in quiz_counts.items()]

    per_day: Counter = Counter(_as_utc(lead.created_at).date() for lead in leads if lead.created_at)
    today = now.date()
    daily_leads = []
    for offset in range(DAILY_WINDOW_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        daily_leads.append({
            "date": day.isoformat(),
            "label": _short_label(day),
            "count": per_day.get(day, 0),
        })

    total = len(leads)
    scheduled = distribution[LeadStatus.SCHEDULED.value]
    return {
        "status_distribution": distribution,
        "leads_by_status": [
            {"name": label, "value": distribution[status.value], "color": color}
            for status, label, color in STATUS_CHART
        ],
        "leads_by_quiz_type": leads_by_quiz_type,
        "daily_leads": daily_leads,
        "totals": {
            "total_leads": total,
            "new_leads": distribution[LeadStatus.NEW.value],
            "contacted": distribution[LeadStatus.CONTACTED.value],
            "scheduled": scheduled,
            "conversion_rate": (scheduled / total * 100) if total else 0.0,
        },
    }


# =============================================================================
# Weekly Trends
# =============================================================================

def compute_weekly_trends(
    leads: Iterable[QuizLead],
    now: Optional[datetime] = None,
    weeks: int = 6,
) -> Dict[str, Any]:
    """
    Per-week lead counts for the last N Sunday-start weeks, oldest first,
    plus current-vs-previous week trend percentages.
    """
    leads = [lead for lead in leads if lead.created_at]
    now = _as_utc(now or datetime.now(timezone.utc))
    days_since_sunday = (now.weekday() + 1) % 7
    current_week_start = datetime.combine(
        now.date() - timedelta(days=days_since_sunday), time.min, tzinfo=timezone.utc
    )

    weekly: List[Dict[str, Any]] = []
    for offset in range(weeks - 1, -1, -1):
        week_start = current_week_start - timedelta(weeks=offset)
        week_end = week_start + timedelta(days=7)
        week_leads = [
            lead for lead in leads
            if week_start <= _as_utc(lead.created_at) < week_end
        ]
        counts = Counter(_status_key(lead) for lead in week_leads)
        weekly.append({
            "period": f"Week of {week_start.date().isoformat()}",
            "week_start": week_start.date().isoformat(),
            "new_leads": counts.get(LeadStatus.NEW.value, 0),
            "contacted": counts.get(LeadStatus.CONTACTED.value, 0),
            "scheduled": counts.get(LeadStatus.SCHEDULED.value, 0),
            "total": len(week_leads),
        })

    empty = {"new_leads": 0, "contacted": 0, "scheduled": 0, "total": 0}
    current = weekly[-1] if weekly else empty
    previous = weekly[-2] if len(weekly) > 1 else empty

    return {
        "weeks": weekly,
        "current_week": current,
        "previous_week": previous,
        "trends": {
            key: calculate_trend_percentage(current[key], previous[key])
            for key in ("new_leads", "contacted", "scheduled", "total")
        },
    }
