"""
Quiz schemas: scoring requests, doctor-built quizzes and quiz incidents.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field


# =============================================================================
# Scoring
# =============================================================================

class QuizScoreRequest(BaseModel):
    """Answers for a built-in quiz."""

    quiz_type: str = Field(..., description="SNOT22, SNOT12, NOSE, HHIA, EPWORTH, DHI, STOP or TNSS")
    answers: List[Union[str, Dict[str, Any]]] = Field(
        default_factory=list,
        description="Answer labels in question order, or {answer} objects"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "quiz_type": "NOSE",
                "answers": ["2 - Moderate", "3 - Fairly Bad", "1 - Very Mild", "4 - Severe", "2 - Moderate"],
            }
        }
    }


class QuizScoreResponse(BaseModel):
    quiz_type: str
    score: int
    interpretation: str
    severity: str = Field(..., description="normal, mild, moderate or severe")
    summary: str


class QuizCatalogEntry(BaseModel):
    quiz_type: str
    title: str
    description: str
    max_score: Optional[int] = None
    score_interpretation: str


# =============================================================================
# Custom Quizzes
# =============================================================================

class QuizOption(BaseModel):
    text: str
    value: int = 0


class QuizQuestion(BaseModel):
    id: Optional[str] = None
    text: str = Field(..., min_length=1)
    type: str = Field(default="multiple_choice")
    options: List[QuizOption] = Field(default_factory=list)
    required: bool = True


class QuizScoring(BaseModel):
    """Severity thresholds as percentages of the maximum score."""

    mild_threshold: float = Field(default=25, ge=0, le=100)
    moderate_threshold: float = Field(default=50, ge=0, le=100)
    severe_threshold: float = Field(default=75, ge=0, le=100)


class CustomQuizCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    instructions: Optional[str] = None
    category: str = Field(default="custom", max_length=50)
    questions: List[QuizQuestion] = Field(default_factory=list)
    scoring: QuizScoring = Field(default_factory=QuizScoring)


class CustomQuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    instructions: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=50)
    questions: Optional[List[QuizQuestion]] = None
    scoring: Optional[QuizScoring] = None


class CustomQuizResponse(BaseModel):
    id: UUID
    doctor_id: UUID
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    category: str
    questions: List[Dict[str, Any]]
    scoring: Dict[str, Any]
    max_score: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QuizGenerationRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=2000, description="What the quiz should assess")
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    base_quiz_id: Optional[UUID] = Field(
        default=None,
        description="Custom quiz whose structure the draft should rework"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "prompt": "Screen adults for chronic allergic rhinitis",
                "title": "Allergy Check",
                "description": "Five questions about seasonal nasal symptoms",
            }
        }
    }


class QuizDraftResponse(CustomQuizCreate):
    """Generated quiz, ready to be reviewed and saved as a custom quiz."""

    max_score: int


class CustomQuizScoreRequest(BaseModel):
    answers: List[Union[int, Dict[str, Any]]] = Field(
        default_factory=list,
        description="Selected option values, or {value} objects"
    )


# =============================================================================
# Incidents
# =============================================================================

class QuizIncidentCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class QuizIncidentResponse(BaseModel):
    id: UUID
    doctor_id: UUID
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
