"""Tests for the dashboard widget TTL cache."""

import asyncio

import pytest

from core.widget_cache import WidgetCache


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingProducer:
    def __init__(self, value="data"):
        self.calls = 0
        self.value = value

    async def __call__(self):
        self.calls += 1
        return f"{self.value}-{self.calls}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return WidgetCache(clock=clock)


def test_fresh_entry_is_served_without_calling_producer(cache):
    producer = CountingProducer()
    first = asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1", user_id="u1"))
    second = asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1", user_id="u1"))
    assert (first.data, first.cached) == ("data-1", False)
    assert (second.data, second.cached) == ("data-1", True)
    assert producer.calls == 1
    assert cache.state("dashboard", "u1").cached


def test_expired_entry_is_refetched_and_overwritten(cache, clock):
    producer = CountingProducer()
    asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1"))
    clock.advance(120)
    assert asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1")).cached
    clock.advance(1)
    result = asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1"))
    assert (result.data, result.cached) == ("data-2", False)
    assert cache.get("dashboard", ttl=120, version="v1") == "data-2"


def test_version_mismatch_triggers_producer(cache):
    producer = CountingProducer()
    asyncio.run(cache.fetch("meal-plans", producer, ttl=300, version="v1"))
    result = asyncio.run(cache.fetch("meal-plans", producer, ttl=300, version="v2"))
    assert not result.cached
    assert producer.calls == 2
    assert cache.get("meal-plans", ttl=300, version="v1") is None


def test_refresh_bypasses_fresh_entry(cache):
    producer = CountingProducer()
    asyncio.run(cache.fetch("weekly-distance", producer, ttl=600, version="v1"))
    result = asyncio.run(cache.refresh("weekly-distance", producer, ttl=600, version="v1"))
    assert result.data == "data-2"
    assert producer.calls == 2


def test_none_results_are_cached(cache):
    calls = []

    async def producer():
        calls.append(1)
        return None

    asyncio.run(cache.fetch("weekly-distance", producer, ttl=600, version="v1"))
    result = asyncio.run(cache.fetch("weekly-distance", producer, ttl=600, version="v1"))
    assert result.cached
    assert len(calls) == 1


def test_producer_error_is_recorded_and_raised(cache):
    good = CountingProducer()
    asyncio.run(cache.fetch("dashboard", good, ttl=120, version="v1", user_id="u1"))

    async def failing():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        asyncio.run(cache.refresh("dashboard", failing, ttl=120, version="v1", user_id="u1"))

    state = cache.state("dashboard", "u1")
    assert isinstance(state.error, RuntimeError)
    assert not state.loading
    assert cache.get("dashboard", ttl=120, version="v1", user_id="u1") == "data-1"


def test_clear_user_only_drops_that_users_entries(cache):
    producer = CountingProducer()
    for key in ("dashboard", "meal-plans"):
        asyncio.run(cache.fetch(key, producer, ttl=120, version="v1", user_id="u1"))
    asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1", user_id="u2"))

    assert cache.clear_user("u1") == 2
    assert cache.get("dashboard", ttl=120, version="v1", user_id="u1") is None
    assert cache.get("dashboard", ttl=120, version="v1", user_id="u2") is not None


def test_purge_expired_and_stats(cache, clock):
    cache.set("short", 1, ttl=10, version="v1")
    cache.set("long", 2, ttl=1000, version="v1")
    clock.advance(11)
    assert cache.purge_expired() == 1
    assert [e["key"] for e in cache.stats()["entries"]] == ["long"]


def test_disabled_cache_always_calls_producer(clock):
    cache = WidgetCache(clock=clock, enabled=False)
    producer = CountingProducer()
    asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1"))
    asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1"))
    assert producer.calls == 2


def test_invalidate(cache):
    cache.set("dashboard", {"score": 80}, ttl=120, version="v1", user_id="u1")
    assert cache.invalidate("dashboard", "u1")
    assert not cache.invalidate("dashboard", "u1")


def test_abandoned_users_do_not_accumulate(cache, clock):
    producer = CountingProducer()
    for i in range(1000):
        asyncio.run(cache.fetch("dashboard", producer, ttl=120, version="v1", user_id=f"user-{i}"))
        clock.advance(1000)
    stats = cache.stats()
    assert stats["total_entries"] == 1
    assert stats["tracked_states"] == 1


def test_write_purges_only_expired_entries(cache, clock):
    cache.set("meal-plans", [], ttl=300, version="v1", user_id="u1")
    cache.set("dashboard", {"score": 80}, ttl=120, version="v1", user_id="u1")
    clock.advance(200)
    cache.set("dashboard", {"score": 70}, ttl=120, version="v1", user_id="u2")
    assert sorted(e["key"] for e in cache.stats()["entries"]) == ["u1:meal-plans", "u2:dashboard"]
