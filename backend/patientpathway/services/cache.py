"""
Redis-backed TTL cache for dashboard reads.

Every entry is stored under a namespaced key (``cached_<key>``) as a JSON
envelope ``{"data", "timestamp", "version"}``. An entry is served only while
it is at most 24 hours old and its version matches the configured cache
version; anything else is treated as a miss and refreshed from the caller's
fetch function.

Provides:
- get-or-fetch (sync and async) with explicit refetch
- Single-key and per-doctor invalidation
- Sweep of expired or unreadable entries
- Graceful fallback to the fetch function when Redis is unavailable
"""

import json
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

import redis
from redis.exceptions import OutOfMemoryError, RedisError

from ..core.config import settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Per-doctor keys written by the dashboard and quiz pages
DOCTOR_CACHE_KEYS = (
    "doctor_profile_{doctor_id}",
    "chatbot_colors_NOSE_{doctor_id}",
    "chatbot_colors_SNOT12_{doctor_id}",
    "ai_content_NOSE_{doctor_id}",
    "ai_content_SNOT12_{doctor_id}",
)

# Analytics entries; trends keys also carry the window size
ANALYTICS_KEY = "analytics_{doctor_id}"
TRENDS_KEY = "weekly_trends_{weeks}_{doctor_id}"

_MISS = object()


class CacheService:
    """
    TTL cache over Redis with fallback to no-cache.

    Args:
        client: Redis client to use (a connection is made from settings if omitted)
        clock: Returns the current time in seconds; injectable for tests
        ttl_seconds: Maximum entry age
        version: Schema version stamped on every entry
        prefix: Namespace prefix for every key
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        clock: Callable[[], float] = time.time,
        ttl_seconds: Optional[int] = None,
        version: Optional[str] = None,
        prefix: Optional[str] = None,
    ):
        self._clock = clock
        self.ttl_seconds = ttl_seconds or settings.cache_ttl_seconds
        self.version = version or settings.cache_version
        self.prefix = prefix if prefix is not None else settings.cache_key_prefix

        self._redis: Optional[redis.Redis] = client
        self._connected = client is not None
        if client is None:
            self._connect()

    def _connect(self) -> None:
        """Establish Redis connection."""
        if not settings.cache_enabled:
            logger.info("Caching disabled by configuration")
            return

        try:
            self._redis = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self._redis.ping()
            self._connected = True
            logger.info("Redis cache connected successfully")
        except RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Operating without cache.")
            self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected and self._redis is not None

    def _ensure_connection(self) -> bool:
        """Ensure Redis connection is active, attempt reconnect if needed."""
        if self._redis is None and not settings.cache_enabled:
            return False

        if self.is_connected:
            try:
                self._redis.ping()
                return True
            except RedisError:
                self._connected = False

        self._connect()
        return self.is_connected

    # ==========================================================================
    # Envelope Helpers
    # ==========================================================================

    def cache_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _is_expired(self, envelope: dict) -> bool:
        timestamp = envelope.get("timestamp")
        if not isinstance(timestamp, (int, float)):
            return True
        return self._now_ms() - timestamp > self.ttl_seconds * 1000

    def _read(self, key: str) -> Tuple[bool, Any]:
        """
        Look up a key.

        Returns:
            (True, data) on a valid hit, (False, None) otherwise. Stale,
            version-mismatched or corrupt entries are removed on the way out.
        """
        if not self._ensure_connection():
            return False, None

        full_key = self.cache_key(key)
        try:
            raw = self._redis.get(full_key)
        except RedisError as e:
            logger.warning(f"Cache get error for {full_key}: {e}")
            return False, None

        if raw is None:
            return False, None

        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError):
            envelope = None

        if (
            not isinstance(envelope, dict)
            or "data" not in envelope
            or self._is_expired(envelope)
            or envelope.get("version") != self.version
        ):
            self._delete(full_key)
            return False, None

        return True, envelope["data"]

    def _delete(self, full_key: str) -> bool:
        try:
            self._redis.delete(full_key)
            return True
        except RedisError as e:
            logger.warning(f"Cache delete error for {full_key}: {e}")
            return False

    # ==========================================================================
    # Basic Operations
    # ==========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Return cached data for a key, or default on a miss."""
        hit, data = self._read(key)
        return data if hit else default

    def set(self, key: str, data: Any) -> bool:
        """
        Store data under a key with the current timestamp and version.

        When Redis reports it is out of memory, expired entries are swept and
        the write is retried once. A second failure is logged and dropped.

        Returns:
            True if the entry was stored
        """
        if not self._ensure_connection():
            return False

        full_key = self.cache_key(key)
        try:
            payload = json.dumps(
                {"data": data, "timestamp": self._now_ms(), "version": self.version},
                default=str,
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Cache value for {full_key} is not serializable: {e}")
            return False

        try:
            self._redis.set(full_key, payload, ex=self.ttl_seconds)
            return True
        except OutOfMemoryError:
            logger.warning(f"Cache storage full writing {full_key}; sweeping expired entries")
            self.clear_all_expired_cache()
            try:
                self._redis.set(full_key, payload, ex=self.ttl_seconds)
                return True
            except RedisError as e:
                logger.warning(f"Cache write for {full_key} dropped after sweep: {e}")
                return False
        except RedisError as e:
            logger.warning(f"Cache set error for {full_key}: {e}")
            return False

    # ==========================================================================
    # Get-or-Fetch
    # ==========================================================================

    def get_or_fetch(self, key: str, fetch: Callable[[], T]) -> T:
        """
        Return the cached value for key, or call fetch and cache its result.

        Any stored envelope counts as a hit, including falsy data.
        """
        hit, data = self._read(key)
        if hit:
            logger.debug(f"Cache hit for {key}")
            return data

        data = fetch()
        self.set(key, data)
        return data

    async def get_or_fetch_async(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Async variant of get_or_fetch for coroutine fetch functions."""
        hit, data = self._read(key)
        if hit:
            logger.debug(f"Cache hit for {key}")
            return data

        data = await fetch()
        self.set(key, data)
        return data

    def refetch(self, key: str, fetch: Callable[[], T]) -> T:
        """Bypass the cache: call fetch, store the fresh result, return it."""
        data = fetch()
        self.set(key, data)
        return data

    # ==========================================================================
    # Invalidation
    # ==========================================================================

    def clear_cache(self, key: str) -> bool:
        """Remove a single cached key."""
        if not self._ensure_connection():
            return False
        return self._delete(self.cache_key(key))

    def clear_doctor_cache(self, doctor_id: str) -> None:
        """Remove the profile, chatbot colour and AI content entries for one doctor."""
        for template in DOCTOR_CACHE_KEYS:
            self.clear_cache(template.format(doctor_id=doctor_id))
        logger.info(f"Cleared cached entries for doctor {doctor_id}")

    def clear_doctor_analytics(self, doctor_id: str) -> int:
        """
        Remove a doctor's analytics summary and every weekly trends window.

        Called whenever the doctor's leads change so the dashboard is
        recomputed from current rows.

        Returns:
            Number of entries removed
        """
        if not self._ensure_connection():
            return 0

        removed = 0
        try:
            keys = [self.cache_key(ANALYTICS_KEY.format(doctor_id=doctor_id))]
            keys.extend(self._redis.scan_iter(match=self.cache_key(f"weekly_trends_*_{doctor_id}")))
            for full_key in keys:
                removed += self._redis.delete(full_key)
        except RedisError as e:
            logger.warning(f"Cache analytics clear error for doctor {doctor_id}: {e}")

        if removed:
            logger.debug(f"Cleared {removed} analytics entries for doctor {doctor_id}")
        return removed

    def clear_all_expired_cache(self) -> int:
        """
        Sweep every namespaced entry that is expired or unreadable.

        Version is not checked here; a mismatched entry is dropped on its next read.

        Returns:
            Number of entries removed
        """
        if not self._ensure_connection():
            return 0

        removed = 0
        try:
            for full_key in self._redis.scan_iter(match=f"{self.prefix}*"):
                raw = self._redis.get(full_key)
                if raw is None:
                    continue
                try:
                    envelope = json.loads(raw)
                    stale = not isinstance(envelope, dict) or self._is_expired(envelope)
                except (TypeError, ValueError):
                    stale = True
                if stale:
                    self._redis.delete(full_key)
                    removed += 1
        except RedisError as e:
            logger.warning(f"Cache sweep error: {e}")

        if removed:
            logger.info(f"Removed {removed} expired cache entries")
        return removed

    # ==========================================================================
    # Health
    # ==========================================================================

    def health_check(self) -> dict:
        """Check Redis health and return status."""
        if not self._ensure_connection():
            return {"status": "unhealthy", "connected": False, "error": "Not connected to Redis"}

        try:
            latency_start = time.time()
            self._redis.ping()
            latency_ms = (time.time() - latency_start) * 1000
            return {"status": "healthy", "connected": True, "latency_ms": round(latency_ms, 2)}
        except RedisError as e:
            return {"status": "unhealthy", "connected": False, "error": str(e)}


# Global cache service instance
_cache_service: Optional[CacheService] = None


def get_cache() -> CacheService:
    """
    Get global cache service instance.

    Creates instance on first call (lazy initialization).
    """
    global _cache_service
    if _cache_service is None:
        _cache_service = CacheService()
    return _cache_service
