"""Read-through cache for account views, Redis-backed when available."""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any

import redis
from loguru import logger

from app.config import settings

PROFILE_NAMESPACE = "user:profile"
DAILY_PROGRESS_NAMESPACE = "progress:daily"


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "hex") and callable(getattr(value, "hex")):
        return str(value)
    raise TypeError(f"Object of type {type(value)!r} is not JSON serializable")


@dataclass
class _CacheEntry:
    expires_at: float | None
    payload: str


class CacheBackend:
    """JSON cache that writes through to Redis and keeps a local copy.

    Redis errors disable the remote side for the rest of the process; reads
    then come from the in-process map only.
    """

    def __init__(self, redis_url: str | None = None) -> None:
        self._lock = threading.Lock()
        self._local: dict[str, _CacheEntry] = {}
        self._redis = None
        if redis_url:
            self._redis = redis.Redis.from_url(redis_url, decode_responses=True)

    def _drop_redis(self, exc: Exception) -> None:
        logger.warning(f"Redis cache disabled: {exc}")
        self._redis = None

    def get(self, namespace: str, key: str) -> Any | None:
        name = f"{namespace}:{key}"
        if self._redis is not None:
            try:
                value = self._redis.get(name)
            except redis.RedisError as exc:
                self._drop_redis(exc)
            else:
                if value is not None:
                    return json.loads(value)
        with self._lock:
            entry = self._local.get(name)
            if entry is None:
                return None
            if entry.expires_at is not None and entry.expires_at < time.time():
                del self._local[name]
                return None
            return json.loads(entry.payload)

    def set(self, namespace: str, key: str, value: Any, ttl_seconds: int) -> None:
        name = f"{namespace}:{key}"
        payload = json.dumps(value, default=_json_default)
        if self._redis is not None:
            try:
                self._redis.set(name, payload, ex=ttl_seconds)
            except redis.RedisError as exc:
                self._drop_redis(exc)
        with self._lock:
            expires_at = time.time() + ttl_seconds if ttl_seconds else None
            self._local[name] = _CacheEntry(expires_at=expires_at, payload=payload)

    def invalidate(self, namespace: str, *, prefix: str) -> None:
        """Drop every key in ``namespace`` starting with ``prefix``."""

        pattern = f"{namespace}:{prefix}"
        if self._redis is not None:
            try:
                for name in self._redis.scan_iter(f"{pattern}*"):
                    self._redis.delete(name)
            except redis.RedisError as exc:
                self._drop_redis(exc)
        with self._lock:
            for name in [name for name in self._local if name.startswith(pattern)]:
                del self._local[name]

    def clear(self) -> None:
        """Reset the in-memory cache for test environments."""

        with self._lock:
            self._local.clear()


cache_backend = CacheBackend(str(settings.REDIS_URL) if settings.REDIS_URL else None)


def invalidate_user_views(user_id: Any) -> None:
    """Forget cached profile and daily progress views for one account."""

    prefix = str(user_id)
    for namespace in (PROFILE_NAMESPACE, DAILY_PROGRESS_NAMESPACE):
        cache_backend.invalidate(namespace, prefix=prefix)


__all__ = [
    "DAILY_PROGRESS_NAMESPACE",
    "PROFILE_NAMESPACE",
    "CacheBackend",
    "cache_backend",
    "invalidate_user_views",
]
