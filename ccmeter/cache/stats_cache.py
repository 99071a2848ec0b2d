"""In-memory stats cache with a staleness threshold.

Repeated UI queries reuse the last computed stats until they are older than
the threshold, instead of re-scanning every log file on each call.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

import structlog

from ..models.analytics import AggregatedStats
from ..services.aggregator import compute_stats
from ..utils.data_source import DataSource

logger = structlog.get_logger()

DEFAULT_STALE_AFTER_SECONDS = 30.0


class _Snapshot(NamedTuple):
    stats: AggregatedStats
    computed_at: float


class StatsCache:
    """Caches AggregatedStats computed from a data source.

    The stored value is an immutable snapshot replaced whole under a lock,
    so readers never see a half-written result. Concurrent callers may both
    decide to recompute; the later write wins and nothing breaks. Callers
    always receive a deep copy, never the stored stats.

    If a reader cannot take the lock within ``lock_timeout`` it treats the
    cache as missed and recomputes rather than waiting or failing.
    """

    def __init__(
        self,
        source: DataSource,
        stale_after_seconds: float = DEFAULT_STALE_AFTER_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
        lock_timeout: float = 1.0,
    ):
        """Initialize the cache.

        Args:
            source: Where usage entries are read from
            stale_after_seconds: Age at which cached stats are recomputed
            clock: Monotonic clock used for staleness checks
            now: Wall clock passed to the aggregation (defaults to UTC now)
            lock_timeout: Seconds a reader waits for the lock before recomputing
        """
        self.source = source
        self.stale_after_seconds = stale_after_seconds
        self._clock = clock
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._lock_timeout = lock_timeout
        self._lock = threading.Lock()
        self._snapshot: Optional[_Snapshot] = None

    def _read_snapshot(self) -> Optional[_Snapshot]:
        if not self._lock.acquire(timeout=self._lock_timeout):
            logger.debug("stats cache lock busy, recomputing")
            return None
        try:
            return self._snapshot
        finally:
            self._lock.release()

    def _is_fresh(self, snapshot: _Snapshot) -> bool:
        return self._clock() - snapshot.computed_at < self.stale_after_seconds

    def get(self) -> AggregatedStats:
        """Get current stats, recomputing only when the cache is stale."""
        snapshot = self._read_snapshot()
        if snapshot is not None and self._is_fresh(snapshot):
            logger.debug("stats cache hit")
            return snapshot.stats.model_copy(deep=True)

        logger.debug("stats cache miss")
        return self.refresh()

    def refresh(self) -> AggregatedStats:
        """Recompute stats unconditionally and store them."""
        entries = self.source.read_entries()
        stats = compute_stats(entries, now=self._now())
        snapshot = _Snapshot(stats=stats, computed_at=self._clock())

        if self._lock.acquire(timeout=self._lock_timeout):
            try:
                self._snapshot = snapshot
            finally:
                self._lock.release()
            logger.debug("stats cache refreshed", entries=len(entries))
        else:
            logger.debug("stats cache lock busy, result not stored")
        return stats.model_copy(deep=True)

    def invalidate(self) -> None:
        """Drop the cached stats so the next get() recomputes."""
        with self._lock:
            self._snapshot = None

    @property
    def last_refresh(self) -> Optional[float]:
        """Clock reading of the last computation, or None if never computed."""
        snapshot = self._read_snapshot()
        return snapshot.computed_at if snapshot else None
