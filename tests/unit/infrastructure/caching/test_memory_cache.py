# tests/unit/infrastructure/caching/test_memory_cache.py
from __future__ import annotations

from dart_insight.infrastructure.caching.memory_cache import InMemoryJsonCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    cache = InMemoryJsonCache(clock=clock)

    cache.set_json("k", {"a": 1}, ttl=10)
    assert cache.get_json("k") == {"a": 1}

    clock.now += 9.9
    assert cache.get_json("k") == {"a": 1}

    clock.now += 0.1
    assert cache.get_json("k") is None
    assert len(cache) == 0


def test_non_positive_ttl_expires_immediately() -> None:
    cache = InMemoryJsonCache(clock=FakeClock())

    cache.set_json("k", {"a": 1}, ttl=0)

    assert cache.get_json("k") is None


def test_stored_value_is_a_copy() -> None:
    cache = InMemoryJsonCache(clock=FakeClock())
    value = {"a": 1}

    cache.set_json("k", value, ttl=60)
    value["a"] = 2

    assert cache.get_json("k") == {"a": 1}
    assert cache.get_json("missing") is None


def test_writes_sweep_expired_entries_that_are_never_read() -> None:
    clock = FakeClock()
    cache = InMemoryJsonCache(clock=clock)
    cache.set_json("stale", {"a": 1}, ttl=10)
    cache.set_json("fresh", {"b": 2}, ttl=100)

    clock.now += 10
    cache.set_json("new", {"c": 3}, ttl=10)

    assert len(cache) == 2
    assert cache.get_json("fresh") == {"b": 2}
    assert cache.get_json("new") == {"c": 3}
