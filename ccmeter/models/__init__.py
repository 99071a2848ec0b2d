"""Data models for ccmeter."""

from .analytics import (
    AggregatedStats,
    ChartData,
    DailyStats,
    HourlyStats,
    ModelChartData,
    ModelStats,
    ProjectChartData,
    ProjectStats,
)
from .log_entry import RawLogEntry, UsageRecord
from .session import SessionInfo, SessionSearchResult

__all__ = [
    "AggregatedStats",
    "ChartData",
    "DailyStats",
    "HourlyStats",
    "ModelChartData",
    "ModelStats",
    "ProjectChartData",
    "ProjectStats",
    "RawLogEntry",
    "SessionInfo",
    "SessionSearchResult",
    "UsageRecord",
]
