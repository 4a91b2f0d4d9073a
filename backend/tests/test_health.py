from patientpathway.main import RateLimitMiddleware, app
from patientpathway.services.cache import CacheService, get_cache


def test_health_with_cache(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["cache"] == "connected"
    assert body["environment"] == "test"


def test_health_degraded_without_redis(client):
    app.dependency_overrides[get_cache] = lambda: CacheService()

    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["cache"] == "disconnected"


def test_readiness_reports_components(client):
    body = client.get("/health/ready").json()

    assert body["status"] == "ready"
    assert body["components"]["database"]["connected"] is True
    assert body["components"]["redis"]["status"] == "healthy"
    assert body["components"]["email"] == {"status": "disabled"}
    assert body["components"]["ai_assistant"] == {"status": "configured"}


def test_liveness(client):
    assert client.get("/health/live").json()["status"] == "alive"


def test_unhandled_route_is_404(client):
    assert client.get("/api/nothing-here").status_code == 404


def test_rate_limiter_forgets_idle_addresses():
    limiter = RateLimitMiddleware(app, requests_per_minute=2)
    limiter._last_prune = 1000.0

    assert limiter._is_rate_limited("203.0.113.1", now=1000.0) is False
    assert limiter._is_rate_limited("203.0.113.2", now=1010.0) is False
    assert set(limiter.request_log) == {"203.0.113.1", "203.0.113.2"}

    # a full window later both earlier addresses are idle
    assert limiter._is_rate_limited("203.0.113.3", now=1070.0) is False
    assert set(limiter.request_log) == {"203.0.113.3"}


def test_rate_limiter_blocks_within_window():
    limiter = RateLimitMiddleware(app, requests_per_minute=2)
    limiter._last_prune = 1000.0

    assert limiter._is_rate_limited("198.51.100.7", now=1000.0) is False
    assert limiter._is_rate_limited("198.51.100.7", now=1001.0) is False
    assert limiter._is_rate_limited("198.51.100.7", now=1002.0) is True
    assert limiter._is_rate_limited("198.51.100.7", now=1061.0) is False
