"""
Quiz share links and URL shortening.

Share links point patients at a doctor's quizzes: the full-page quiz, the
chat-style embed, the standard embed, and ready-to-paste iframe code.
Short links are requested from public shorteners in order (TinyURL, is.gd,
v.gd); if every service fails the original URL is returned unchanged.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..core.config import settings
from ..models.lead import QuizType
from .quiz_scoring import get_quiz_info


logger = logging.getLogger(__name__)

# (provider name, endpoint) tried in order; each returns the short URL as plain text
SHORTENERS: List[Tuple[str, str, Dict[str, str]]] = [
    ("tinyurl", "https://tinyurl.com/api-create.php", {}),
    ("is.gd", "https://is.gd/create.php", {"format": "simple"}),
    ("v.gd", "https://v.gd/create.php", {"format": "simple"}),
]

EMBED_IFRAME = (
    '<iframe src="{url}" width="100%" height="600" frameborder="0" '
    'style="border: none; border-radius: 16px; box-shadow: 0 4px 6px -1px rgb(0 0 0 / 0.1);"></iframe>'
)


# =============================================================================
# Share Links
# =============================================================================

def build_share_links(doctor_id: str, base_url: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Share URLs for every built-in quiz.

    Args:
        doctor_id: Doctor profile id carried on every link
        base_url: Public site URL (defaults to settings.app_url)

    Returns:
        One dict per quiz type with share_url, chat_url, standard_url and embed_code
    """
    base = (base_url or settings.app_url).rstrip("/")
    links = []
    for quiz_type in QuizType:
        slug = quiz_type.value.lower()
        standard_url = f"{base}/embed/quiz/{slug}?doctor={doctor_id}&mode=fullpage"
        links.append({
            "quiz_type": quiz_type.value,
            "title": get_quiz_info(quiz_type.value)["title"],
            "share_url": f"{base}/quiz/{slug}?doctor={doctor_id}",
            "chat_url": f"{base}/embed/quiz/{slug}?doctor={doctor_id}&mode=chat",
            "standard_url": standard_url,
            "embed_code": EMBED_IFRAME.format(url=standard_url),
        })
    return links


# =============================================================================
# URL Shortening
# =============================================================================

async def _try_shortener(
    client: httpx.AsyncClient,
    name: str,
    endpoint: str,
    params: Dict[str, str],
    long_url: str,
) -> Optional[str]:
    try:
        response = await client.get(endpoint, params={**params, "url": long_url})
    except httpx.TimeoutException:
        logger.warning(f"{name} shortener timed out")
        return None
    except httpx.RequestError as e:
        logger.warning(f"{name} shortener connection error: {e}")
        return None

    short_url = response.text.strip()
    if response.status_code != 200 or not short_url.startswith("http"):
        logger.warning(f"{name} shortener returned {response.status_code}: {short_url[:100]}")
        return None
    return short_url


async def shorten_url(long_url: str, client: Optional[httpx.AsyncClient] = None) -> Dict[str, Any]:
    """
    Shorten a URL, falling back through the configured services.

    Args:
        long_url: URL to shorten
        client: HTTP client to use (one is created if omitted)

    Returns:
        Dict with short_url, provider, and shortened (False when the original
        URL is returned)
    """
    if client is None:
        async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as owned:
            return await shorten_url(long_url, owned)

    for name, endpoint, params in SHORTENERS:
        short_url = await _try_shortener(client, name, endpoint, params, long_url)
        if short_url:
            logger.info(f"Shortened URL via {name}")
            return {"short_url": short_url, "provider": name, "shortened": True}

    logger.warning("All URL shorteners failed; returning original URL")
    return {"short_url": long_url, "provider": None, "shortened": False}
