"""
Answer storage for issued CAPTCHAs.

The service only needs a small key-value contract with per-entry expiry.
`pull` must be atomic per key: two concurrent verifications of the same
token may not both see the answer.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Protocol

import redis
from redis.exceptions import RedisError

from math_captcha.config import Settings
from math_captcha.logging_config import get_logger

logger = get_logger(__name__)


class AnswerStoreUnavailableError(RuntimeError):
    pass


class AnswerStoreConfigError(ValueError):
    pass


class AnswerStore(Protocol):
    def put(self, key: str, value: int, ttl: timedelta) -> None: ...

    def get(self, key: str) -> int | None: ...

    def delete(self, key: str) -> None: ...

    def pull(self, key: str) -> int | None:
        """Return the value for key and remove it in one step."""
        ...


class MemoryAnswerStore:
    """In-process store. Expired entries are hidden on read and removed by `purge_expired`."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def put(self, key: str, value: int, ttl: timedelta) -> None:
        expires_at = self._clock() + ttl.total_seconds()
        with self._lock:
            self._entries[key] = (int(value), expires_at)

    def get(self, key: str) -> int | None:
        with self._lock:
            return self._live_value(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def pull(self, key: str) -> int | None:
        with self._lock:
            value = self._live_value(key)
            self._entries.pop(key, None)
            return value

    def purge_expired(self) -> int:
        """Delete expired entries. Returns count of deleted entries."""
        now = self._clock()
        with self._lock:
            expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def _live_value(self, key: str) -> int | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[key]
            return None
        return value


class RedisAnswerStore:
    """Redis-backed store. Expiry is handled by the server (SET ... EX)."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisAnswerStore":
        return cls(redis.Redis.from_url(url))

    def put(self, key: str, value: int, ttl: timedelta) -> None:
        try:
            self._client.set(key, int(value), ex=ttl)
        except RedisError as e:
            raise AnswerStoreUnavailableError(f"Answer store write failed: {e}") from e

    def get(self, key: str) -> int | None:
        try:
            raw = self._client.get(key)
        except RedisError as e:
            raise AnswerStoreUnavailableError(f"Answer store read failed: {e}") from e
        return self._decode(raw)

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as e:
            raise AnswerStoreUnavailableError(f"Answer store delete failed: {e}") from e

    def pull(self, key: str) -> int | None:
        try:
            raw = self._client.getdel(key)
        except RedisError as e:
            raise AnswerStoreUnavailableError(f"Answer store read failed: {e}") from e
        return self._decode(raw)

    @staticmethod
    def _decode(raw: bytes | str | None) -> int | None:
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        return int(raw)


def build_answer_store(settings: Settings) -> MemoryAnswerStore | RedisAnswerStore:
    """Create the answer store selected by settings.store_backend."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        logger.info("answer_store_configured", backend="memory")
        return MemoryAnswerStore()
    if backend == "redis":
        logger.info("answer_store_configured", backend="redis")
        return RedisAnswerStore.from_url(settings.redis_url)
    raise AnswerStoreConfigError(
        f"Unknown store backend {settings.store_backend!r} (expected 'memory' or 'redis')"
    )
