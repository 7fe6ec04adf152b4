"""Ephemeral key/value stores with per-entry expiry.

Used to memoize catalog listings and analytics responses and to hold the
logout token blacklist. Two interchangeable backends:

- ``MemoryStore``: process-local, bounded to ``maxsize`` entries, each entry
  evicted once its TTL elapses (cachetools ``TLRUCache``). When full, the
  least recently used entry is evicted first.
- ``RedisStore``: shared across workers via a redis-py connection pool.
  Backend failures are logged and treated as a miss.

Stores are created once at startup (see ``app.main``) and injected into
routes through ``app.api.deps``. A cache miss must never change a response,
only its latency.
"""

import hashlib
import json
import logging
import threading
import time
from typing import Any, Callable

import redis
from cachetools import TLRUCache

from app.config import Settings

logger = logging.getLogger(__name__)


def make_key(prefix: str, params: dict[str, Any]) -> str:
    """Create a deterministic cache key from prefix + sorted param hash."""
    serialised = json.dumps(params, sort_keys=True, default=str)
    digest = hashlib.sha256(serialised.encode()).hexdigest()[:16]
    return f"quizhub:{prefix}:{digest}"


class TTLStore:
    """Interface shared by the store backends. Values must be JSON-serialisable."""

    def get(self, key: str) -> Any | None:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: int) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


def _expires_at(_key: str, value: tuple[int, str], now: float) -> float:
    ttl, _ = value
    return now + ttl


class MemoryStore(TTLStore):
    def __init__(self, maxsize: int = 10_000, timer: Callable[[], float] = time.monotonic) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_expires_at, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        return json.loads(entry[1])

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        payload = json.dumps(value, default=str)
        with self._lock:
            self._entries[key] = (ttl, payload)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    @property
    def maxsize(self) -> int:
        return int(self._entries.maxsize)

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)


class RedisStore(TTLStore):
    def __init__(self, url: str, max_connections: int = 10) -> None:
        self._pool = redis.ConnectionPool.from_url(
            url,
            decode_responses=True,
            max_connections=max_connections,
        )

    def _client(self) -> redis.Redis:
        return redis.Redis(connection_pool=self._pool)

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client().get(key)
        except redis.RedisError as e:
            logger.warning("Cache read failed (non-fatal): %s", e)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        try:
            self._client().setex(key, ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            logger.warning("Cache write failed (non-fatal): %s", e)

    def delete(self, key: str) -> None:
        try:
            self._client().delete(key)
        except redis.RedisError as e:
            logger.warning("Cache delete failed (non-fatal): %s", e)


class NullStore(TTLStore):
    """Remembers nothing. Used when ``CACHE_ENABLED`` is off."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        return None

    def delete(self, key: str) -> None:
        return None


def build_store(settings: Settings, maxsize: int | None = None) -> TTLStore:
    """Pick the store backend configured by ``CACHE_BACKEND``.

    *maxsize* bounds a memory store; it defaults to ``CACHE_MAX_ENTRIES``.
    """
    if settings.CACHE_BACKEND == "redis":
        logger.info("Using Redis store at %s", settings.REDIS_URL)
        return RedisStore(settings.REDIS_URL)
    if settings.CACHE_BACKEND != "memory":
        raise ValueError(f"Unknown CACHE_BACKEND: {settings.CACHE_BACKEND!r}")
    return MemoryStore(maxsize=maxsize or settings.CACHE_MAX_ENTRIES)


class ResponseCache:
    """Memoizes serialised responses in a store, honouring ``CACHE_ENABLED``."""

    def __init__(self, store: TTLStore, enabled: bool = True) -> None:
        self.store = store if enabled else NullStore()

    def get(self, prefix: str, params: dict[str, Any]) -> Any | None:
        key = make_key(prefix, params)
        hit = self.store.get(key)
        logger.debug("Cache %s: %s", "HIT" if hit is not None else "MISS", key)
        return hit

    def set(self, prefix: str, params: dict[str, Any], value: Any, ttl: int) -> None:
        key = make_key(prefix, params)
        self.store.set(key, value, ttl)
        logger.debug("Cache SET: %s (ttl=%ds)", key, ttl)
