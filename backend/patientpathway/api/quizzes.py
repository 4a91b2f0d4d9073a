"""
Quiz endpoints.

Public scoring for the built-in assessments and doctor-built quizzes, plus
dashboard management of custom quizzes and quiz incidents (named lead
sources used to tag share links).
"""

import logging
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.auth import get_current_doctor
from ..core.database import get_db
from ..models.doctor_profile import DoctorProfile
from ..models.lead import QuizType
from ..models.quiz import CustomQuiz, QuizIncident
from ..schemas.common import ErrorResponse, SuccessResponse
from ..schemas.quiz import (
    CustomQuizCreate,
    CustomQuizResponse,
    CustomQuizScoreRequest,
    CustomQuizUpdate,
    QuizCatalogEntry,
    QuizIncidentCreate,
    QuizIncidentResponse,
    QuizScoreRequest,
    QuizScoreResponse,
)
from ..services.quiz_scoring import (
    calculate_max_score,
    calculate_quiz_score,
    get_quiz_info,
    score_custom_quiz,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quizzes"])


# =============================================================================
# Built-in Quizzes
# =============================================================================

@router.get(
    "",
    response_model=List[QuizCatalogEntry],
    summary="List Quizzes",
    description="Titles, descriptions and score ranges of the built-in assessments.",
)
async def list_quizzes() -> List[Dict[str, Any]]:
    return [{"quiz_type": quiz_type.value, **get_quiz_info(quiz_type.value)} for quiz_type in QuizType]


@router.post(
    "/score",
    response_model=QuizScoreResponse,
    summary="Score Quiz",
    description="Score a built-in assessment. Unknown quiz types score 0.",
)
async def score_quiz(request: QuizScoreRequest) -> Dict[str, Any]:
    result = calculate_quiz_score(request.quiz_type, request.answers)
    return {"quiz_type": request.quiz_type.upper(), **result.to_dict()}


# =============================================================================
# Custom Quizzes
# =============================================================================

def _get_quiz_or_404(db: Session, doctor: DoctorProfile, quiz_id: UUID) -> CustomQuiz:
    quiz = (
        db.query(CustomQuiz)
        .filter(CustomQuiz.id == quiz_id, CustomQuiz.doctor_id == doctor.id)
        .first()
    )
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")
    return quiz


@router.get("/custom", response_model=List[CustomQuizResponse], summary="List Custom Quizzes")
async def list_custom_quizzes(
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> List[CustomQuiz]:
    return (
        db.query(CustomQuiz)
        .filter(CustomQuiz.doctor_id == doctor.id)
        .order_by(CustomQuiz.created_at.desc())
        .all()
    )


@router.post(
    "/custom",
    response_model=CustomQuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Custom Quiz",
    description="The maximum score is computed from the highest option of each question.",
)
async def create_custom_quiz(
    data: CustomQuizCreate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> CustomQuiz:
    questions = [question.model_dump() for question in data.questions]
    quiz = CustomQuiz(
        doctor_id=doctor.id,
        title=data.title,
        description=data.description,
        instructions=data.instructions,
        category=data.category,
        questions=questions,
        scoring=data.scoring.model_dump(),
        max_score=calculate_max_score(questions),
    )
    db.add(quiz)
    db.commit()
    db.refresh(quiz)
    logger.info(f"Created custom quiz {quiz.id} ({len(questions)} questions, max {quiz.max_score})")
    return quiz


@router.get(
    "/custom/{quiz_id}",
    response_model=CustomQuizResponse,
    summary="Get Custom Quiz",
    responses={404: {"description": "Quiz not found", "model": ErrorResponse}},
)
async def get_custom_quiz(
    quiz_id: UUID,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> CustomQuiz:
    return _get_quiz_or_404(db, doctor, quiz_id)


@router.put(
    "/custom/{quiz_id}",
    response_model=CustomQuizResponse,
    summary="Update Custom Quiz",
    responses={404: {"description": "Quiz not found", "model": ErrorResponse}},
)
async def update_custom_quiz(
    quiz_id: UUID,
    data: CustomQuizUpdate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> CustomQuiz:
    quiz = _get_quiz_or_404(db, doctor, quiz_id)
    updates = data.model_dump(exclude_unset=True)

    for field in ("title", "description", "instructions", "category"):
        if field in updates:
            setattr(quiz, field, updates[field])
    if data.questions is not None:
        quiz.questions = [question.model_dump() for question in data.questions]
        quiz.max_score = calculate_max_score(quiz.questions)
    if data.scoring is not None:
        quiz.scoring = data.scoring.model_dump()

    db.commit()
    db.refresh(quiz)
    return quiz


@router.delete(
    "/custom/{quiz_id}",
    response_model=SuccessResponse,
    summary="Delete Custom Quiz",
    responses={404: {"description": "Quiz not found", "model": ErrorResponse}},
)
async def delete_custom_quiz(
    quiz_id: UUID,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    quiz = _get_quiz_or_404(db, doctor, quiz_id)
    db.delete(quiz)
    db.commit()
    return SuccessResponse(message="Quiz deleted")


@router.post(
    "/custom/{quiz_id}/score",
    response_model=QuizScoreResponse,
    summary="Score Custom Quiz",
    description="Public scoring of a doctor-built quiz against its thresholds.",
    responses={404: {"description": "Quiz not found", "model": ErrorResponse}},
)
async def score_custom(
    quiz_id: UUID,
    request: CustomQuizScoreRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    quiz = db.get(CustomQuiz, quiz_id)
    if quiz is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz not found")

    result = score_custom_quiz(quiz.questions, quiz.scoring, request.answers, quiz.max_score)
    return {"quiz_type": "custom", **result.to_dict()}


# =============================================================================
# Quiz Incidents
# =============================================================================

@router.get("/incidents", response_model=List[QuizIncidentResponse], summary="List Incidents")
async def list_incidents(
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> List[QuizIncident]:
    return (
        db.query(QuizIncident)
        .filter(QuizIncident.doctor_id == doctor.id)
        .order_by(QuizIncident.created_at.desc())
        .all()
    )


@router.post(
    "/incidents",
    response_model=QuizIncidentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Incident",
)
async def create_incident(
    data: QuizIncidentCreate,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> QuizIncident:
    incident = QuizIncident(doctor_id=doctor.id, name=data.name, description=data.description)
    db.add(incident)
    db.commit()
    db.refresh(incident)
    return incident


@router.delete(
    "/incidents/{incident_id}",
    response_model=SuccessResponse,
    summary="Delete Incident",
    responses={404: {"description": "Incident not found", "model": ErrorResponse}},
)
async def delete_incident(
    incident_id: UUID,
    doctor: DoctorProfile = Depends(get_current_doctor),
    db: Session = Depends(get_db),
) -> SuccessResponse:
    incident = (
        db.query(QuizIncident)
        .filter(QuizIncident.id == incident_id, QuizIncident.doctor_id == doctor.id)
        .first()
    )
    if incident is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Incident not found")
    db.delete(incident)
    db.commit()
    return SuccessResponse(message="Incident deleted")
