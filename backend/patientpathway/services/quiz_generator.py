"""
AI drafting of doctor-built quizzes.

The model is asked for a JSON quiz (questions with options plus severity
thresholds). The reply is parsed and validated into a custom-quiz draft the
doctor can review and save; nothing is stored here.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..schemas.quiz import CustomQuizCreate
from .ai_assistant import AIAssistantError, request_completion
from .quiz_scoring import calculate_max_score


logger = logging.getLogger(__name__)

QUIZ_MAX_TOKENS = 2000

QUIZ_SYSTEM_PROMPT = """You are a medical quiz generator. Generate a JSON object with questions based on the user's requirements.
{mode}

Return ONLY a valid JSON object with this exact structure:
{{
  "questions": [
    {{
      "id": "q1",
      "text": "Question text here",
      "options": ["Option 1", "Option 2", "Option 3", "Option 4"]
    }}
  ],
  "maxScore": 100,
  "scoring": {{
    "mild_threshold": 25,
    "moderate_threshold": 50,
    "severe_threshold": 75
  }}
}}

Order each question's options from least to most severe."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class QuizGenerationError(AIAssistantError):
    """The model reply could not be turned into a quiz."""


def build_quiz_messages(
    prompt: str,
    title: str,
    description: str,
    base_questions: Optional[List[Dict[str, Any]]] = None,
) -> List[Dict[str, str]]:
    if base_questions:
        mode = (
            "Modify the existing quiz structure but create new relevant questions.\n"
            f"Existing questions: {json.dumps([q.get('text') for q in base_questions])}"
        )
    else:
        mode = "Create a completely new quiz."

    return [
        {"role": "system", "content": QUIZ_SYSTEM_PROMPT.format(mode=mode)},
        {
            "role": "user",
            "content": f"Create a medical assessment quiz: {prompt}. Title: {title}. Description: {description}",
        },
    ]


def _option(option: Any, index: int) -> Dict[str, Any]:
    # Bare strings score by position, least severe first
    if isinstance(option, dict):
        return {"text": str(option.get("text", "")), "value": option.get("value", index)}
    return {"text": str(option), "value": index}


def parse_quiz_reply(content: str, title: str, description: Optional[str] = None) -> Dict[str, Any]:
    """
    Turn the model's JSON reply into a custom-quiz draft.

    Returns:
        Dict shaped like CustomQuizCreate plus max_score

    Raises:
        QuizGenerationError: If the reply is not JSON or has no usable questions
    """
    try:
        data = json.loads(_FENCE_RE.sub("", (content or "").strip()))
    except ValueError as e:
        raise QuizGenerationError("Generated quiz is not valid JSON") from e

    if not isinstance(data, dict) or not isinstance(data.get("questions"), list) or not data["questions"]:
        raise QuizGenerationError("Generated quiz has no questions")

    questions = []
    for index, question in enumerate(data["questions"]):
        if not isinstance(question, dict) or not isinstance(question.get("options"), list):
            raise QuizGenerationError(f"Generated question {index + 1} is malformed")
        if len(question["options"]) < 2:
            raise QuizGenerationError(f"Generated question {index + 1} has fewer than two options")
        questions.append({
            "id": str(question.get("id") or f"q{index + 1}"),
            "text": question.get("text"),
            "options": [_option(option, i) for i, option in enumerate(question["options"])],
        })

    scoring = data.get("scoring") if isinstance(data.get("scoring"), dict) else {}
    try:
        draft = CustomQuizCreate(
            title=title,
            description=description,
            questions=questions,
            scoring={key: value for key, value in scoring.items() if key.endswith("_threshold")},
        )
    except ValidationError as e:
        raise QuizGenerationError(f"Generated quiz failed validation: {e.errors()[0]['msg']}") from e

    result = draft.model_dump()
    result["max_score"] = calculate_max_score(result["questions"])
    return result


async def generate_quiz(
    prompt: str,
    title: str,
    description: Optional[str] = None,
    base_questions: Optional[List[Dict[str, Any]]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Draft a custom quiz with OpenRouter.

    Args:
        prompt: What the quiz should assess
        title: Quiz title
        description: Quiz description
        base_questions: Questions of an existing quiz to rework
        client: HTTP client to use (one is created if omitted)

    Raises:
        AIAssistantError: If the request fails
        QuizGenerationError: If the reply is malformed
    """
    messages = build_quiz_messages(prompt, title, description or "", base_questions)
    content = await request_completion(messages, client, max_tokens=QUIZ_MAX_TOKENS)
    draft = parse_quiz_reply(content, title, description)
    logger.info(f"Generated quiz draft '{title}' with {len(draft['questions'])} questions")
    return draft
