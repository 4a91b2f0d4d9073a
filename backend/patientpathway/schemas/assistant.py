"""
Schemas for the patient AI assistant and quiz share links.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


# =============================================================================
# AI Assistant
# =============================================================================

class AssistantContext(BaseModel):
    """Quiz result the conversation is about. Keys match the quiz page."""

    quizTitle: Optional[str] = None
    score: Optional[float] = None
    maxScore: Optional[float] = None
    severity: Optional[str] = None
    interpretation: Optional[str] = None


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class AssistantRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    context: AssistantContext = Field(default_factory=AssistantContext)
    messages: List[ChatTurn] = Field(default_factory=list, description="Earlier turns, oldest first")

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "What does a moderate score mean for me?",
                "context": {
                    "quizTitle": "NOSE Assessment",
                    "score": 55,
                    "maxScore": 100,
                    "severity": "moderate",
                    "interpretation": "Moderate nasal obstruction",
                },
                "messages": [],
            }
        }
    }


class AssistantResponse(BaseModel):
    response: str


# =============================================================================
# Share Links
# =============================================================================

class ShareLink(BaseModel):
    quiz_type: str
    title: str
    share_url: str
    chat_url: str
    standard_url: str
    embed_code: str


class ShortUrlRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)


class ShortUrlResponse(BaseModel):
    short_url: str
    provider: Optional[str] = None
    shortened: bool
