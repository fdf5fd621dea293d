# src/dart_insight/infrastructure/caching/memory_cache.py
# Copyright (c)
# SPDX-License-Identifier: MIT
"""In-memory JSON cache adapter.

Purpose:
    Small thread-safe :class:`CachePort` implementation used by the CLI and
    tests. Entries expire by monotonic clock; expired entries are dropped
    on read and swept on every write.

Layer:
    infrastructure/caching
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from typing import Any

from dart_insight.application.interfaces.cache_port import CachePort


class InMemoryJsonCache(CachePort):
    """A small, thread-safe in-memory cache for the CLI and tests.

    Args:
        clock: Monotonic time source in seconds; injectable for tests.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get_json(self, key: str) -> Mapping[str, Any] | None:
        """Return a JSON blob by key if present and not expired."""
        with self._lock:
            entry = self._store.get(key)
            if not entry:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                self._store.pop(key, None)
                return None
            return value

    def set_json(self, key: str, value: Mapping[str, Any], *, ttl: int) -> None:
        """Store a JSON-serializable mapping under the given key."""
        now = self._clock()
        expires_at = now if ttl <= 0 else now + float(ttl)

        with self._lock:
            self._sweep_expired(now)
            self._store[key] = (expires_at, dict(value))

    def _sweep_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._store.items() if expires_at <= now]
        for k in expired:
            del self._store[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


__all__ = ["InMemoryJsonCache"]
