"""Tests for the in-memory stats cache."""

import threading
from datetime import datetime, timedelta, timezone

from ccmeter.cache.stats_cache import StatsCache
from ccmeter.models.log_entry import UsageRecord
from ccmeter.utils.data_source import DataSource

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


class CountingSource(DataSource):
    """Data source returning a fixed, mutable entry list."""

    def __init__(self):
        self.entries = []
        self.reads = 0

    @property
    def name(self):
        return "counting"

    def read_entries(self, max_age_days=None, now=None):
        self.reads += 1
        return list(self.entries)

    def add(self, input_tokens=100):
        self.entries.append(
            UsageRecord(
                timestamp=NOW, model="claude-sonnet-4", input_tokens=input_tokens
            )
        )


def _cache(source, clock, stale_after=30.0, **kwargs):
    return StatsCache(
        source, stale_after_seconds=stale_after, clock=clock, now=lambda: NOW, **kwargs
    )


class TestStatsCache:
    """Tests for staleness, refresh and invalidation."""

    def test_first_get_computes(self):
        source = CountingSource()
        source.add()
        cache = _cache(source, FakeClock())

        assert cache.last_refresh is None
        stats = cache.get()

        assert stats.total_messages_count == 1
        assert stats.last_updated == NOW
        assert source.reads == 1
        assert cache.last_refresh == 1000.0

    def test_fresh_cache_returns_same_result(self):
        source = CountingSource()
        clock = FakeClock()
        cache = _cache(source, clock)

        first = cache.get()
        source.add()
        clock.advance(29.9)
        second = cache.get()

        assert second == first
        assert second is not first
        assert source.reads == 1

    def test_stale_cache_recomputes(self):
        source = CountingSource()
        clock = FakeClock()
        cache = _cache(source, clock)

        cache.get()
        source.add()
        clock.advance(30)
        stats = cache.get()

        assert stats.total_messages_count == 1
        assert source.reads == 2
        assert cache.last_refresh == 1030.0

    def test_refresh_ignores_freshness(self):
        source = CountingSource()
        cache = _cache(source, FakeClock())

        cache.get()
        source.add()
        stats = cache.refresh()

        assert stats.total_messages_count == 1
        assert cache.get() == stats
        assert source.reads == 2

    def test_invalidate(self):
        source = CountingSource()
        cache = _cache(source, FakeClock())

        cache.get()
        cache.invalidate()

        assert cache.last_refresh is None
        cache.get()
        assert source.reads == 2

    def test_zero_threshold_always_recomputes(self):
        source = CountingSource()
        cache = _cache(source, FakeClock(), stale_after=0.0)

        cache.get()
        cache.get()

        assert source.reads == 2

    def test_busy_lock_falls_back_to_recompute(self):
        source = CountingSource()
        source.add()
        cache = _cache(source, FakeClock(), lock_timeout=0.01)
        cache.get()

        cache._lock.acquire()
        try:
            stats = cache.get()
        finally:
            cache._lock.release()

        assert stats.total_messages_count == 1
        assert source.reads == 2

    def test_concurrent_readers(self):
        source = CountingSource()
        source.add()
        cache = _cache(source, FakeClock())
        results = []

        def reader():
            for _ in range(20):
                results.append(cache.get().total_messages_count)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == [1] * 80

    def test_callers_cannot_change_cached_stats(self):
        source = CountingSource()
        source.add()
        cache = _cache(source, FakeClock())

        first = cache.get()
        first.total_messages_count = 999
        first.by_model.clear()
        second = cache.get()

        assert second.total_messages_count == 1
        assert "claude-sonnet-4" in second.by_model
        assert source.reads == 1

        refreshed = cache.refresh()
        refreshed.by_project.clear()
        assert cache.get().by_project != {}


class TestStatsCacheTimestamps:
    """Tests for last_updated moving with recomputation."""

    def _setup(self):
        source = CountingSource()
        source.add()
        clock = FakeClock()
        wall = {"now": NOW}
        cache = StatsCache(
            source, stale_after_seconds=30.0, clock=clock, now=lambda: wall["now"]
        )
        return source, clock, wall, cache

    def test_stale_get_after_new_data_updates(self):
        source, clock, wall, cache = self._setup()
        first = cache.get()

        source.add(input_tokens=500)
        clock.advance(31)
        wall["now"] = NOW + timedelta(seconds=31)
        second = cache.get()

        assert second.last_updated == NOW + timedelta(seconds=31)
        assert second.last_updated != first.last_updated
        assert second.total_messages_count == 2
        assert second.total_input_tokens == 600

    def test_fresh_get_keeps_last_updated(self):
        source, clock, wall, cache = self._setup()
        first = cache.get()

        source.add()
        clock.advance(10)
        wall["now"] = NOW + timedelta(seconds=10)

        assert cache.get().last_updated == first.last_updated

    def test_refresh_within_threshold_updates(self):
        source, clock, wall, cache = self._setup()
        first = cache.get()

        source.add(input_tokens=500)
        clock.advance(5)
        wall["now"] = NOW + timedelta(seconds=5)
        refreshed = cache.refresh()

        assert refreshed.last_updated == NOW + timedelta(seconds=5)
        assert refreshed.last_updated != first.last_updated
        assert refreshed.total_messages_count == 2
        assert cache.get().last_updated == refreshed.last_updated
