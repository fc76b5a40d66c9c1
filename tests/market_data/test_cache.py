"""
Cache Layer Tests.

============================================================
PURPOSE
============================================================
Tests for TTLCache and SingleFlight.

TEST CATEGORIES:
- TTL expiry driven by MockClock
- clear() semantics
- Single-flight sharing under concurrent misses

============================================================
"""

import asyncio
import gc
from datetime import datetime, timezone

import pytest

from core.clock import MockClock
from market_data.cache import CacheEntry, SingleFlight, TTLCache


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def clock():
    return MockClock(datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


# ============================================================
# TTL CACHE TESTS
# ============================================================

class TestTTLCache:
    """Tests for TTLCache."""

    def test_put_then_get_returns_value_unchanged(self, cache):
        value = [[1, 2.0, 3.0, 1.0, 2.5]]
        cache.put("ohlc:bitcoin:7", value, ttl=60)

        assert cache.get("ohlc:bitcoin:7") is value

    def test_get_missing_key(self, cache):
        assert cache.get("ohlc:bitcoin:7") is None

    def test_entry_valid_until_ttl(self, cache, clock):
        cache.put("k", "v", ttl=60)
        clock.advance(60)

        assert cache.get("k") == "v"

    def test_entry_absent_after_ttl(self, cache, clock):
        cache.put("k", "v", ttl=60)
        clock.advance(61)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_put_overwrites_and_resets_expiry(self, cache, clock):
        cache.put("k", "old", ttl=60)
        clock.advance(50)
        cache.put("k", "new", ttl=60)
        clock.advance(50)

        assert cache.get("k") == "new"

    def test_put_returns_entry_with_absolute_expiry(self, cache, clock):
        entry = cache.put("k", "v", ttl=30)

        assert isinstance(entry, CacheEntry)
        assert entry.expires_at == clock.timestamp() + 30

    def test_negative_ttl_rejected(self, cache):
        with pytest.raises(ValueError):
            cache.put("k", "v", ttl=-1)

    def test_clear_removes_everything(self, cache):
        cache.put("a", 1, ttl=60)
        cache.put("b", 2, ttl=60)

        assert cache.clear() == 2
        assert cache.get("a") is None
        assert cache.get("b") is None

    def test_clear_twice_is_safe(self, cache):
        cache.put("a", 1, ttl=60)

        assert cache.clear() == 1
        assert cache.clear() == 0

    def test_contains(self, cache, clock):
        cache.put("a", 1, ttl=10)
        assert "a" in cache

        clock.advance(11)
        assert "a" not in cache


# ============================================================
# SINGLE FLIGHT TESTS
# ============================================================

class TestSingleFlight:
    """Tests for SingleFlight."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_call(self):
        flight = SingleFlight()
        calls = 0
        release = asyncio.Event()

        async def load():
            nonlocal calls
            calls += 1
            await release.wait()
            return "payload"

        waiters = [asyncio.create_task(flight.run("k", load)) for _ in range(5)]
        await asyncio.sleep(0)
        assert flight.in_flight("k")

        release.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results == ["payload"] * 5
        assert not flight.in_flight("k")

    @pytest.mark.asyncio
    async def test_different_keys_run_independently(self):
        flight = SingleFlight()
        calls = []

        async def load(key):
            calls.append(key)
            return key

        results = await asyncio.gather(
            flight.run("a", lambda: load("a")),
            flight.run("b", lambda: load("b")),
        )

        assert sorted(calls) == ["a", "b"]
        assert results == ["a", "b"]

    @pytest.mark.asyncio
    async def test_errors_are_shared_and_key_released(self):
        flight = SingleFlight()

        async def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await flight.run("k", boom)

        assert not flight.in_flight("k")
        assert await flight.run("k", _value("ok")) == "ok"

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        flight = SingleFlight()
        calls = 0

        async def load():
            nonlocal calls
            calls += 1
            return calls

        assert await flight.run("k", load) == 1
        assert await flight.run("k", load) == 2

    @pytest.mark.asyncio
    async def test_failure_after_waiter_cancelled_is_collected(self):
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        flight = SingleFlight()
        release = asyncio.Event()

        async def load():
            await release.wait()
            raise RuntimeError("upstream gone")

        try:
            waiter = asyncio.ensure_future(flight.run("k", load))
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            release.set()
            for _ in range(3):
                await asyncio.sleep(0)
            del waiter
            gc.collect()
        finally:
            loop.set_exception_handler(None)

        assert not flight.in_flight("k")
        assert reported == []


def _value(value):
    async def load():
        return value
    return load
