import asyncio
import json

import fakeredis
from redis.exceptions import OutOfMemoryError

from patientpathway.services.cache import CacheService


DAY_SECONDS = 24 * 60 * 60


class Clock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class Fetcher:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class FullRedis(fakeredis.FakeRedis):
    """FakeRedis whose next N writes fail as if maxmemory were reached."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.failures = 0

    def set(self, *args, **kwargs):
        if self.failures > 0:
            self.failures -= 1
            raise OutOfMemoryError("OOM command not allowed when used memory > 'maxmemory'")
        return super().set(*args, **kwargs)


def test_get_or_fetch_serves_hit_without_fetching(redis_client):
    cache = CacheService(client=redis_client)
    fetch = Fetcher({"name": "Dr. Rivera"})

    assert cache.get_or_fetch("doctor_profile_1", fetch) == {"name": "Dr. Rivera"}
    assert cache.get_or_fetch("doctor_profile_1", fetch) == {"name": "Dr. Rivera"}
    assert fetch.calls == 1


def test_entries_are_namespaced_envelopes(redis_client):
    clock = Clock()
    cache = CacheService(client=redis_client, clock=clock)
    cache.set("analytics_1", [1, 2, 3])

    envelope = json.loads(redis_client.get("cached_analytics_1"))
    assert envelope == {"data": [1, 2, 3], "timestamp": int(clock.now * 1000), "version": "1.0"}


def test_entry_expires_after_24_hours(redis_client):
    clock = Clock()
    cache = CacheService(client=redis_client, clock=clock)
    fetch = Fetcher("fresh")

    cache.get_or_fetch("k", fetch)
    clock.now += DAY_SECONDS
    cache.get_or_fetch("k", fetch)
    assert fetch.calls == 1

    clock.now += 1
    cache.get_or_fetch("k", fetch)
    assert fetch.calls == 2


def test_version_mismatch_is_a_miss_and_evicts(redis_client):
    CacheService(client=redis_client, version="1.0").set("k", "old")
    cache = CacheService(client=redis_client, version="2.0")
    fetch = Fetcher("new")

    assert cache.get_or_fetch("k", fetch) == "new"
    assert fetch.calls == 1
    assert json.loads(redis_client.get("cached_k"))["version"] == "2.0"


def test_falsy_data_counts_as_a_hit(redis_client):
    cache = CacheService(client=redis_client)
    cache.set("empty", [])
    fetch = Fetcher(["refetched"])

    assert cache.get_or_fetch("empty", fetch) == []
    assert fetch.calls == 0


def test_refetch_bypasses_cache(redis_client):
    cache = CacheService(client=redis_client)
    cache.set("k", "stale")

    assert cache.refetch("k", Fetcher("fresh")) == "fresh"
    assert cache.get("k") == "fresh"


def test_corrupt_entry_is_a_miss(redis_client):
    redis_client.set("cached_k", "{not json")
    cache = CacheService(client=redis_client)

    assert cache.get("k", default="missing") == "missing"
    assert redis_client.get("cached_k") is None


def test_async_get_or_fetch(redis_client):
    cache = CacheService(client=redis_client)
    calls = []

    async def fetch():
        calls.append(1)
        return {"ok": True}

    assert asyncio.run(cache.get_or_fetch_async("k", fetch)) == {"ok": True}
    assert asyncio.run(cache.get_or_fetch_async("k", fetch)) == {"ok": True}
    assert len(calls) == 1


def test_clear_doctor_cache_removes_only_that_doctors_keys(redis_client):
    cache = CacheService(client=redis_client)
    doctor_keys = [
        "doctor_profile_doctor-123",
        "chatbot_colors_NOSE_doctor-123",
        "chatbot_colors_SNOT12_doctor-123",
        "ai_content_NOSE_doctor-123",
        "ai_content_SNOT12_doctor-123",
    ]
    for key in doctor_keys + ["doctor_profile_doctor-456", "analytics_doctor-123"]:
        cache.set(key, "value")

    cache.clear_doctor_cache("doctor-123")

    for key in doctor_keys:
        assert redis_client.get(f"cached_{key}") is None
    assert cache.get("doctor_profile_doctor-456") == "value"
    assert cache.get("analytics_doctor-123") == "value"


def test_clear_doctor_analytics_removes_summary_and_every_trend_window(redis_client):
    cache = CacheService(client=redis_client)
    for key in (
        "analytics_doctor-123",
        "weekly_trends_6_doctor-123",
        "weekly_trends_12_doctor-123",
        "analytics_doctor-456",
        "weekly_trends_6_doctor-456",
        "doctor_profile_doctor-123",
    ):
        cache.set(key, "value")

    assert cache.clear_doctor_analytics("doctor-123") == 3

    assert cache.get("analytics_doctor-123") is None
    assert cache.get("weekly_trends_6_doctor-123") is None
    assert cache.get("weekly_trends_12_doctor-123") is None
    assert cache.get("analytics_doctor-456") == "value"
    assert cache.get("weekly_trends_6_doctor-456") == "value"
    assert cache.get("doctor_profile_doctor-123") == "value"


def test_clear_cache_removes_single_key(redis_client):
    cache = CacheService(client=redis_client)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.clear_cache("a") is True
    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_sweep_removes_expired_and_unreadable_entries(redis_client):
    clock = Clock()
    cache = CacheService(client=redis_client, clock=clock)
    cache.set("old", "x")
    clock.now += DAY_SECONDS + 1
    cache.set("fresh", "y")
    redis_client.set("cached_garbage", "not json")
    redis_client.set("unrelated_key", "not json")

    assert cache.clear_all_expired_cache() == 2
    assert redis_client.get("cached_old") is None
    assert redis_client.get("cached_garbage") is None
    assert cache.get("fresh") == "y"
    assert redis_client.get("unrelated_key") == "not json"


def test_out_of_memory_sweeps_then_retries_once():
    redis_client = FullRedis(decode_responses=True)
    redis_client.set("cached_expired", json.dumps({"data": 1, "timestamp": 0, "version": "1.0"}))
    cache = CacheService(client=redis_client)

    redis_client.failures = 1
    assert cache.set("k", "value") is True
    assert redis_client.get("cached_expired") is None
    assert cache.get("k") == "value"


def test_out_of_memory_twice_gives_up_quietly():
    redis_client = FullRedis(decode_responses=True)
    cache = CacheService(client=redis_client)
    fetch = Fetcher("value")

    redis_client.failures = 2
    assert cache.get_or_fetch("k", fetch) == "value"
    assert redis_client.get("cached_k") is None


def test_without_redis_every_call_fetches():
    # CACHE_ENABLED is false in the test environment
    cache = CacheService()
    fetch = Fetcher("value")

    assert cache.get_or_fetch("k", fetch) == "value"
    assert cache.get_or_fetch("k", fetch) == "value"
    assert fetch.calls == 2
    assert cache.set("k", "value") is False
    assert cache.health_check()["connected"] is False


def test_health_check_reports_connected(cache):
    assert cache.health_check()["status"] == "healthy"
