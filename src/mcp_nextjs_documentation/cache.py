"""Best-effort Redis cache for search results."""

import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import redis

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


class CacheBackend(Protocol):
    """The subset of the redis client API used by the cache."""

    def get(self, name: str) -> Any: ...

    def setex(self, name: str, time: int, value: str) -> Any: ...

    def delete(self, *names: str) -> Any: ...

    def keys(self, pattern: str = "*") -> Any: ...


class CacheStatus(Enum):
    """Outcome of a cache lookup."""

    HIT = "hit"
    MISS = "miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CacheLookup:
    """Result of ``ResultCache.get``."""

    status: CacheStatus
    payload: Any = None

    @property
    def hit(self) -> bool:
        """Whether the lookup returned a payload."""
        return self.status is CacheStatus.HIT


MISS = CacheLookup(CacheStatus.MISS)
UNAVAILABLE = CacheLookup(CacheStatus.UNAVAILABLE)


class ResultCache:
    """Stores JSON payloads with a creation timestamp and TTL.

    Backend failures never propagate: reads report ``UNAVAILABLE`` and
    writes return False.
    """

    def __init__(
        self,
        backend: CacheBackend | None,
        default_ttl: int = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialise cache.

        Args:
            backend: Redis-compatible client, or None to disable caching.
            default_ttl: TTL in seconds used when ``set`` gets none.
            clock: Returns the current time in seconds.
        """
        self.backend = backend
        self.default_ttl = default_ttl
        self.clock = clock

    @classmethod
    def from_url(cls, url: str | None, default_ttl: int = DEFAULT_TTL) -> "ResultCache":
        """Connect to Redis, degrading to a disabled cache.

        Args:
            url: Redis connection URL; None disables caching.
            default_ttl: TTL in seconds used when ``set`` gets none.

        Returns:
            ResultCache instance.
        """
        if not url:
            logger.info("No Redis URL configured, search caching disabled")
            return cls(None, default_ttl)

        try:
            client = redis.Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            client.ping()
        except (redis.RedisError, ValueError) as exc:
            logger.warning("Failed to initialise Redis: %s. Search caching disabled.", exc)
            return cls(None, default_ttl)

        logger.info("Redis cache initialised")
        return cls(client, default_ttl)

    @property
    def available(self) -> bool:
        """Whether a backend is configured."""
        return self.backend is not None

    @staticmethod
    def key(query: str, filters: Mapping[str, Any] | None = None) -> str:
        """Build a deterministic cache key for a search.

        Args:
            query: Search query; case and surrounding whitespace are ignored.
            filters: Search options; None values are omitted and order is ignored.

        Returns:
            Key of the form ``search:<query>:<name:value>_<name:value>``.
        """
        normalised = query.strip().lower()
        options = sorted((name, value) for name, value in (filters or {}).items() if value is not None)
        encoded = "_".join(f"{name}:{_format_value(value)}" for name, value in options)
        return f"search:{normalised}:{encoded}"

    def get(self, key: str) -> CacheLookup:
        """Look up a payload.

        Args:
            key: Cache key.

        Returns:
            HIT with the payload, MISS when absent or expired, or UNAVAILABLE
            when no backend is configured or the backend fails.
        """
        if self.backend is None:
            return UNAVAILABLE

        try:
            raw = self.backend.get(key)
            if raw is None:
                return MISS
            entry = json.loads(raw)
            if self.clock() - entry["timestamp"] > entry["ttl"]:
                self.backend.delete(key)
                return MISS
            return CacheLookup(CacheStatus.HIT, entry["data"])
        except redis.RedisError as exc:
            logger.warning("Redis get error for key %s: %s", key, exc)
            return UNAVAILABLE
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Discarding corrupt cache entry %s: %s", key, exc)
            return MISS

    def set(self, key: str, payload: Any, ttl: int | None = None) -> bool:
        """Store a payload.

        Args:
            key: Cache key.
            payload: JSON-serialisable value.
            ttl: Time to live in seconds; defaults to ``default_ttl``.

        Returns:
            True if the entry was written.
        """
        if self.backend is None:
            return False

        ttl = ttl or self.default_ttl
        try:
            entry = json.dumps({"data": payload, "timestamp": self.clock(), "ttl": ttl})
            self.backend.setex(key, ttl, entry)
        except redis.RedisError as exc:
            logger.warning("Redis set error for key %s: %s", key, exc)
            return False
        except (TypeError, ValueError) as exc:
            logger.warning("Cannot serialise cache entry %s: %s", key, exc)
            return False
        return True

    def clear(self, pattern: str = "search:*") -> int:
        """Delete every key matching a pattern.

        Args:
            pattern: Redis glob pattern.

        Returns:
            Number of keys deleted.
        """
        if self.backend is None:
            return 0

        try:
            keys = list(self.backend.keys(pattern))
            if keys:
                self.backend.delete(*keys)
        except redis.RedisError as exc:
            logger.warning("Redis clear error for pattern %s: %s", pattern, exc)
            return 0
        return len(keys)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
