import asyncio
from unittest.mock import AsyncMock, patch

import httpx

from patientpathway.models.lead import QuizType
from patientpathway.services.sharing import build_share_links, shorten_url


LONG_URL = "https://app.example.com/quiz/nose?doctor=abc"


def run_shorten(handler):
    async def _run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await shorten_url(LONG_URL, client)

    return asyncio.run(_run())


class TestShareLinks:
    def test_one_link_set_per_quiz(self):
        links = build_share_links("doc-1", base_url="https://site.example.com/")

        assert [link["quiz_type"] for link in links] == [q.value for q in QuizType]

        nose = next(link for link in links if link["quiz_type"] == "NOSE")
        assert nose["title"] == "Nasal Obstruction Symptom Evaluation"
        assert nose["share_url"] == "https://site.example.com/quiz/nose?doctor=doc-1"
        assert nose["chat_url"] == "https://site.example.com/embed/quiz/nose?doctor=doc-1&mode=chat"
        assert nose["standard_url"].endswith("&mode=fullpage")
        assert f'src="{nose["standard_url"]}"' in nose["embed_code"]

    def test_endpoint_requires_auth(self, client):
        assert client.get("/api/share/links").status_code == 401

    def test_endpoint_uses_doctor_id(self, client, auth_headers, doctor):
        response = client.get("/api/share/links", headers=auth_headers)

        assert response.status_code == 200
        assert all(f"doctor={doctor.id}" in link["share_url"] for link in response.json())


class TestShortenUrl:
    def test_tinyurl_first(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            return httpx.Response(200, text="https://tinyurl.com/abc123\n")

        result = run_shorten(handler)

        assert result == {"short_url": "https://tinyurl.com/abc123", "provider": "tinyurl", "shortened": True}
        assert seen == ["tinyurl.com"]

    def test_falls_back_in_order(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            if request.url.host == "tinyurl.com":
                return httpx.Response(503, text="unavailable")
            if request.url.host == "is.gd":
                raise httpx.ConnectError("refused", request=request)
            assert request.url.params["format"] == "simple"
            assert request.url.params["url"] == LONG_URL
            return httpx.Response(200, text="https://v.gd/xyz")

        result = run_shorten(handler)

        assert seen == ["tinyurl.com", "is.gd", "v.gd"]
        assert result["provider"] == "v.gd"
        assert result["short_url"] == "https://v.gd/xyz"

    def test_non_url_body_counts_as_failure(self):
        def handler(request):
            return httpx.Response(200, text="Error: rate limited")

        result = run_shorten(handler)

        assert result == {"short_url": LONG_URL, "provider": None, "shortened": False}

    def test_endpoint_returns_original_when_all_fail(self, client):
        fallback = {"short_url": LONG_URL, "provider": None, "shortened": False}
        with patch("patientpathway.api.assistant.shorten_url", new=AsyncMock(return_value=fallback)):
            response = client.post("/api/share/short-url", json={"url": LONG_URL})

        assert response.status_code == 200
        assert response.json() == fallback
