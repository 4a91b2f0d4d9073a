"""
Analytics API endpoints.

Dashboard charts for the signed-in doctor: pipeline status counts, leads by
quiz type, a 30-day daily series and week-over-week trends. Results are
cached per doctor and cleared whenever the doctor's leads change;
pass refresh=true to recompute.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.database import get_db
from ..models.doctor_profile import DoctorProfile
from ..services.analytics import compute_lead_analytics, compute_weekly_trends
from ..services.cache import ANALYTICS_KEY, TRENDS_KEY, CacheService, get_cache
from ..services.lead_service import list_doctor_leads


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get(
    "/summary",
    summary="Lead Analytics",
    description="Status distribution, quiz-type breakdown and daily leads for the last 30 days.",
)
async def get_analytics_summary(
    refresh: bool = Query(False, description="Bypass the cache"),
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    def fetch() -> Dict[str, Any]:
        return compute_lead_analytics(list_doctor_leads(db, doctor.id))

    key = ANALYTICS_KEY.format(doctor_id=doctor.id)
    if refresh:
        return cache.refetch(key, fetch)
    return cache.get_or_fetch(key, fetch)


@router.get(
    "/trends",
    summary="Weekly Trends",
    description="Per-week lead counts with current-vs-previous week change.",
)
async def get_weekly_trends(
    weeks: int = Query(6, ge=2, le=52),
    refresh: bool = Query(False, description="Bypass the cache"),
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    def fetch() -> Dict[str, Any]:
        return compute_weekly_trends(list_doctor_leads(db, doctor.id), weeks=weeks)

    key = TRENDS_KEY.format(weeks=weeks, doctor_id=doctor.id)
    if refresh:
        return cache.refetch(key, fetch)
    return cache.get_or_fetch(key, fetch)
