"""
Patient-facing AI assistant backed by OpenRouter chat completions.

The assistant explains a patient's quiz result in plain language. The system
prompt is built from the result context, followed by the last few turns of
the conversation and the new message.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import settings


logger = logging.getLogger(__name__)

HISTORY_LIMIT = 6
TOP_P = 0.9

FALLBACK_RESPONSE = (
    "🤖 I apologize, but I'm having trouble connecting right now. Our medical team "
    "will be reaching out to you soon. In the meantime, if you have urgent concerns, "
    "please consult with a healthcare professional directly.\n\n"
    "💙 Take care, and don't hesitate to try asking me again!"
)
FALLBACK_ERROR = "Sorry, I encountered an error. Please try again."

SYSTEM_PROMPT = """You are a compassionate and knowledgeable medical AI assistant helping patients understand their health assessment results.

IMPORTANT GUIDELINES:
- You are NOT a replacement for professional medical advice
- Always encourage users to consult with healthcare professionals for proper diagnosis and treatment
- Provide educational information, not medical diagnoses
- Be empathetic, supportive, and reassuring
- Keep responses concise but informative

PATIENT ASSESSMENT CONTEXT:
- Assessment: {quiz_title}
- Score: {score}/{max_score}
- Severity Level: {severity}
- Medical Interpretation: {interpretation}

Your role is to:
1. Help patients understand their results in simple terms
2. Provide general health education related to their condition
3. Suggest lifestyle modifications that might help
4. Explain what they can expect during medical consultations
5. Offer emotional support and reassurance
6. Answer questions about symptoms and general health topics

Always remind patients that this is educational information and they should consult with their healthcare provider for personalized medical advice."""


class AIAssistantError(Exception):
    """The completion could not be produced."""


def build_system_prompt(context: Dict[str, Any]) -> str:
    return SYSTEM_PROMPT.format(
        quiz_title=context.get("quizTitle", "Unknown assessment"),
        score=context.get("score", "N/A"),
        max_score=context.get("maxScore", "N/A"),
        severity=context.get("severity", "unknown"),
        interpretation=context.get("interpretation", "Not available"),
    )


def build_messages(
    message: str,
    context: Dict[str, Any],
    history: Optional[List[Dict[str, str]]] = None,
) -> List[Dict[str, str]]:
    """System prompt, the last HISTORY_LIMIT turns, then the new user message."""
    recent = list(history or [])[-HISTORY_LIMIT:]
    return [
        {"role": "system", "content": build_system_prompt(context)},
        *[{"role": turn.get("role", "user"), "content": turn.get("content", "")} for turn in recent],
        {"role": "user", "content": message},
    ]


async def request_completion(
    messages: List[Dict[str, str]],
    client: Optional[httpx.AsyncClient] = None,
    max_tokens: Optional[int] = None,
) -> str:
    """
    Send a chat-completions request to OpenRouter and return the reply text.

    Args:
        messages: {role, content} messages, system prompt first
        client: HTTP client to use (one is created if omitted)
        max_tokens: Reply length cap (defaults to settings.openrouter_max_tokens)

    Raises:
        AIAssistantError: If the API key is missing or the request fails
    """
    if not settings.openrouter_api_key:
        raise AIAssistantError("OpenRouter API key not configured")

    if client is None:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as owned:
            return await request_completion(messages, owned, max_tokens)

    payload = {
        "model": settings.openrouter_model,
        "messages": messages,
        "temperature": settings.openrouter_temperature,
        "max_tokens": max_tokens or settings.openrouter_max_tokens,
        "top_p": TOP_P,
    }
    headers = {
        "Authorization": f"Bearer {settings.openrouter_api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.app_url,
        "X-Title": "Medical Assessment AI Assistant",
    }

    try:
        response = await client.post(settings.openrouter_url, json=payload, headers=headers)
    except httpx.TimeoutException as e:
        logger.error("OpenRouter request timed out")
        raise AIAssistantError("OpenRouter request timed out") from e
    except httpx.RequestError as e:
        logger.error(f"OpenRouter connection error: {e}")
        raise AIAssistantError(f"OpenRouter connection error: {e}") from e

    if response.status_code != 200:
        logger.error(f"OpenRouter API error {response.status_code}: {response.text[:200]}")
        raise AIAssistantError(f"OpenRouter API error: {response.status_code}")

    try:
        return response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        logger.error(f"Unexpected OpenRouter response: {response.text[:200]}")
        raise AIAssistantError("Unexpected OpenRouter response") from e


async def generate_reply(
    message: str,
    context: Dict[str, Any],
    history: Optional[List[Dict[str, str]]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Ask OpenRouter for the assistant's reply.

    Args:
        message: The patient's new message
        context: Quiz result (quizTitle, score, maxScore, severity, interpretation)
        history: Earlier {role, content} turns
        client: HTTP client to use (one is created if omitted)

    Returns:
        The assistant's reply text

    Raises:
        AIAssistantError: If the API key is missing or the request fails
    """
    return await request_completion(build_messages(message, context, history), client)
