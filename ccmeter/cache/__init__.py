"""In-memory caching for ccmeter.

Provides a staleness-checked cache of aggregated usage statistics.
"""

from .stats_cache import StatsCache, DEFAULT_STALE_AFTER_SECONDS

__all__ = [
    "StatsCache",
    "DEFAULT_STALE_AFTER_SECONDS",
]
