"""
Patient AI assistant, AI quiz drafting and quiz share-link endpoints.

The assistant and short links are public: the assistant is used from the
results page, and short links are requested by the share dialog. Quiz
drafting and share links are for the signed-in doctor.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.database import get_db
from ..models.doctor_profile import DoctorProfile
from ..models.quiz import CustomQuiz
from ..schemas.common import ErrorResponse
from ..schemas.assistant import (
    AssistantRequest,
    AssistantResponse,
    ShareLink,
    ShortUrlRequest,
    ShortUrlResponse,
)
from ..schemas.quiz import QuizDraftResponse, QuizGenerationRequest
from ..services.ai_assistant import (
    FALLBACK_ERROR,
    FALLBACK_RESPONSE,
    AIAssistantError,
    generate_reply,
)
from ..services.quiz_generator import generate_quiz
from ..services.sharing import build_share_links, shorten_url


logger = logging.getLogger(__name__)

ai_router = APIRouter(prefix="/api/ai", tags=["AI Assistant"])
share_router = APIRouter(prefix="/api/share", tags=["Sharing"])


# =============================================================================
# AI Assistant
# =============================================================================

@ai_router.post(
    "/assistant",
    response_model=AssistantResponse,
    summary="Ask the Assistant",
    description="Explain a quiz result in plain language.",
    responses={500: {"description": "Assistant unavailable; body carries a fallback response"}},
)
async def ask_assistant(request: AssistantRequest):
    history = [turn.model_dump() for turn in request.messages]
    try:
        reply = await generate_reply(request.message, request.context.model_dump(exclude_none=True), history)
    except AIAssistantError as e:
        logger.error(f"AI assistant failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": FALLBACK_ERROR, "response": FALLBACK_RESPONSE},
        )
    return AssistantResponse(response=reply)


@ai_router.post(
    "/quiz-generator",
    response_model=QuizDraftResponse,
    summary="Draft a Custom Quiz",
    description="Generate questions and severity thresholds for a custom quiz. The draft is not saved.",
    responses={
        404: {"description": "Base quiz not found", "model": ErrorResponse},
        500: {"description": "Generation failed", "model": ErrorResponse},
    },
)
async def draft_quiz(
    request: QuizGenerationRequest,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    base_questions = None
    if request.base_quiz_id is not None:
        base = (
            db.query(CustomQuiz)
            .filter(CustomQuiz.id == request.base_quiz_id, CustomQuiz.doctor_id == doctor.id)
            .first()
        )
        if base is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
        base_questions = base.questions

    try:
        return await generate_quiz(request.prompt, request.title, request.description, base_questions)
    except AIAssistantError as e:
        logger.error(f"Quiz generation failed for doctor {doctor.id}: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


# =============================================================================
# Share Links
# =============================================================================

@share_router.get(
    "/links",
    response_model=List[ShareLink],
    summary="Quiz Share Links",
    description="Share, chat and embed URLs for every built-in quiz.",
)
async def get_share_links(
    doctor: DoctorProfile = Depends(get_current_doctor),
) -> List[Dict[str, Any]]:
    return build_share_links(str(doctor.id))


@share_router.post(
    "/short-url",
    response_model=ShortUrlResponse,
    summary="Shorten URL",
    description="TinyURL, then is.gd, then v.gd; the original URL if all fail.",
)
async def create_short_url(request: ShortUrlRequest) -> Dict[str, Any]:
    return await shorten_url(request.url)
