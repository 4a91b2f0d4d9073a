"""
Lead submission and management endpoints.

Handles quiz submissions from the public quiz pages, the automation webhook,
and lead retrieval and pipeline updates for the dashboard.
"""

import logging
import uuid
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.database import get_db
from ..models.doctor_profile import DoctorProfile
from ..models.lead import LeadStatus
from ..schemas.common import ErrorResponse
from ..schemas.lead import (
    LeadListResponse,
    LeadResponse,
    LeadStatusUpdate,
    LeadSubmitResponse,
    WebhookResponse,
)
from ..services.lead_service import (
    LeadStorageError,
    LeadValidationError,
    build_webhook_payload,
    create_lead,
    get_doctor_lead,
    list_doctor_leads,
    serialize_lead,
    update_lead_status,
)
from ..services.cache import CacheService, get_cache
from ..services.notifications import run_lead_fanout


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/leads", tags=["Leads"])


def _create_or_400(db: Session, cache: CacheService, payload: Any, is_public_submission: bool):
    try:
        lead = create_lead(db, payload, is_public_submission=is_public_submission)
    except LeadValidationError as e:
        logger.info(f"Rejected lead submission: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except LeadStorageError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    cache.clear_doctor_analytics(str(lead.doctor_id))
    return lead


# =============================================================================
# Public Submission Endpoints
# =============================================================================

@router.post(
    "/submit",
    response_model=LeadSubmitResponse,
    summary="Submit Quiz Lead",
    description="Accepts a completed quiz from the public quiz pages.",
    responses={
        200: {"description": "Lead created"},
        400: {"description": "Missing field or storage error", "model": ErrorResponse},
    },
)
async def submit_lead(
    background_tasks: BackgroundTasks,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    """
    Store a quiz submission and notify the patient and doctor.

    The notification fan-out runs after the response is sent; its outcome
    never affects this response.
    """
    lead = _create_or_400(db, cache, payload, is_public_submission=True)
    background_tasks.add_task(run_lead_fanout, lead.id)
    return {"success": True, "data": serialize_lead(lead)}


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    summary="Lead Webhook",
    description="Stores a lead and returns it shaped for external automation tools.",
    responses={400: {"description": "Missing field or storage error", "model": ErrorResponse}},
)
async def lead_webhook(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    lead = _create_or_400(db, cache, payload, is_public_submission=False)

    doctor: Optional[DoctorProfile] = None
    try:
        doctor = db.get(DoctorProfile, lead.doctor_id)
        if doctor is None:
            logger.warning(f"Doctor {lead.doctor_id} not found for webhook lead {lead.id}")
    except SQLAlchemyError as e:
        logger.error(f"Error fetching doctor profile for webhook lead {lead.id}: {e}")

    return {
        "success": True,
        "data": build_webhook_payload(lead, doctor, payload),
        "message": "Lead webhook processed successfully",
        "webhook_id": str(uuid.uuid4()),
    }


# =============================================================================
# Dashboard Endpoints
# =============================================================================

@router.get(
    "",
    response_model=LeadListResponse,
    summary="List Leads",
    description="The signed-in doctor's leads, newest first.",
)
async def list_leads(
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    quiz_type: Optional[str] = Query(None),
    incident_source: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    leads = list_doctor_leads(
        db,
        doctor.id,
        status=status_filter,
        quiz_type=quiz_type,
        incident_source=incident_source,
        limit=limit,
    )
    return {"items": [serialize_lead(lead) for lead in leads], "total": len(leads)}


@router.get(
    "/{lead_id}",
    response_model=LeadResponse,
    summary="Get Lead",
    responses={404: {"description": "Lead not found", "model": ErrorResponse}},
)
async def get_lead(
    lead_id: UUID,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    lead = get_doctor_lead(db, doctor.id, lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return serialize_lead(lead)


@router.patch(
    "/{lead_id}/status",
    response_model=LeadResponse,
    summary="Update Lead Status",
    description="Move a lead between NEW, CONTACTED and SCHEDULED.",
    responses={
        400: {"description": "Invalid transition", "model": ErrorResponse},
        404: {"description": "Lead not found", "model": ErrorResponse},
    },
)
async def patch_lead_status(
    lead_id: UUID,
    update: LeadStatusUpdate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
) -> Dict[str, Any]:
    lead = get_doctor_lead(db, doctor.id, lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    try:
        lead = update_lead_status(db, lead, update.status, update.scheduled_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    cache.clear_doctor_analytics(str(doctor.id))
    return serialize_lead(lead)
