from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


@dataclass
class KeyLock:
    lock: Lock = field(default_factory=Lock)
    waiters: int = 0


class TTLCache:
    """In-process key/value store with per-entry expiry.

    Expired entries are purged lazily when read; there is no background sweep
    and no size bound. An entry is valid while ``now < expires_at``.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._key_locks: dict[str, KeyLock] = {}
        self._hits = 0
        self._misses = 0
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.expires_at <= now:
                self._store.pop(key, None)
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None):
        expires_at = math.inf if ttl_seconds is None else self._clock() + ttl_seconds
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def get_or_set(self, key: str, loader: Callable[[], Any], ttl_seconds: float | None) -> tuple[Any, bool]:
        """Return ``(value, hit)``, calling ``loader`` at most once per miss.

        Concurrent callers missing on the same key wait for the first loader
        and then read its result. Loader exceptions propagate and leave the
        key empty. Each call counts as exactly one hit or one miss.
        """
        cached = self.get(key)
        if cached is not None:
            return cached, True

        key_lock = self._acquire_key_lock(key)
        try:
            with key_lock.lock:
                with self._lock:
                    entry = self._store.get(key)
                    if entry is not None and entry.expires_at > self._clock():
                        return entry.value, True
                value = loader()
                self.set(key, value, ttl_seconds)
                logger.debug("Cached %s (ttl=%s)", key, ttl_seconds)
                return value, False
        finally:
            self._release_key_lock(key, key_lock)

    def _acquire_key_lock(self, key: str) -> KeyLock:
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = KeyLock()
            key_lock.waiters += 1
            return key_lock

    def _release_key_lock(self, key: str, key_lock: KeyLock):
        # The lock lives only while someone holds or waits on it.
        with self._lock:
            key_lock.waiters -= 1
            if key_lock.waiters == 0 and self._key_locks.get(key) is key_lock:
                del self._key_locks[key]

    def pending_loads(self) -> int:
        with self._lock:
            return len(self._key_locks)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._store if key.startswith(prefix)]
            for key in doomed:
                del self._store[key]
            return len(doomed)

    def clear(self):
        with self._lock:
            self._store.clear()

    def metrics(self) -> dict[str, int]:
        with self._lock:
            return {"hits": self._hits, "misses": self._misses, "size": len(self._store)}
