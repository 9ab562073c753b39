import asyncio
import threading
import time

import pytest

from duroos.services.memory_cache import TTLCache


def test_value_is_available_until_ttl_then_gone(cache, clock):
    cache.set("k", "v", ttl=10)
    clock.advance(9.99)
    assert cache.get("k") == "v"
    clock.advance(0.02)
    assert cache.get("k") is None
    assert not cache.has("k")


def test_set_overwrites_value_and_deadline(cache, clock):
    cache.set("k", 1, ttl=5)
    clock.advance(4)
    cache.set("k", 2, ttl=5)
    clock.advance(4)
    assert cache.get("k") == 2


def test_non_positive_ttl_is_rejected(cache):
    with pytest.raises(ValueError):
        cache.set("k", "v", ttl=0)


def test_get_or_set_computes_once_then_hits(cache):
    calls = []

    def compute():
        calls.append(1)
        return {"n": len(calls)}

    first = asyncio.run(cache.get_or_set("k", compute, ttl=60))
    second = asyncio.run(cache.get_or_set("k", compute, ttl=60))
    assert first == second == {"n": 1}
    assert len(calls) == 1


def test_get_or_set_accepts_coroutines(cache):
    async def compute():
        return "async value"

    assert asyncio.run(cache.get_or_set("k", compute, ttl=60)) == "async value"
    assert cache.get("k") == "async value"


def test_failed_computation_is_not_cached_and_retried(cache):
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("store down")
        return "ok"

    with pytest.raises(RuntimeError):
        asyncio.run(cache.get_or_set("k", flaky, ttl=60))
    assert not cache.has("k")
    assert asyncio.run(cache.get_or_set("k", flaky, ttl=60)) == "ok"
    assert len(attempts) == 2


def test_invalidate_pattern_only_removes_matches(cache):
    cache.set("homepage:overview", 1)
    cache.set("homepage:sections", 2)
    cache.set("sitemap:xml", 3)
    assert cache.invalidate_pattern("homepage:*") == 2
    assert cache.keys() == ["sitemap:xml"]


def test_pattern_special_characters_are_literal(cache):
    cache.set("a.b", 1)
    cache.set("axb", 2)
    assert cache.invalidate_pattern("a.b") == 1
    assert cache.has("axb")


def test_delete_and_clear(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.delete("a") is True
    assert cache.delete("a") is False
    cache.clear()
    assert cache.size() == 0


def test_stats(cache):
    assert cache.get_stats()["hitRate"] == "N/A"
    cache.set("a", 1)
    cache.get("a")
    cache.get("a")
    cache.get("missing")
    stats = cache.get_stats()
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert stats["sets"] == 1
    assert stats["size"] == 1
    assert stats["hitRate"] == "66.7%"


def test_sweeper_evicts_without_a_read():
    cache = TTLCache()
    cache.set("k", "v", ttl=0.05)
    deadline = time.monotonic() + 2
    while "k" in cache._store and time.monotonic() < deadline:
        time.sleep(0.01)
    assert "k" not in cache._store
    cache.close()


def _sweepers():
    return sum(1 for t in threading.enumerate() if t.name == "ttl-cache-sweeper")


def test_one_sweeper_thread_serves_every_key():
    before = _sweepers()
    cache = TTLCache()
    for i in range(50):
        cache.set(f"k{i}", i, ttl=3600)
    assert _sweepers() == before + 1
    cache.close()
    assert not cache._sweeper.is_alive()


def test_overwritten_key_keeps_its_new_deadline():
    cache = TTLCache()
    cache.set("k", 1, ttl=0.05)
    cache.set("k", 2, ttl=3600)
    time.sleep(0.2)
    assert cache.get("k") == 2
    cache.close()
