"""Chart series for the analytics dashboard.

Independent of the stats cache: every call reads its own entry window and
re-derives costs from the pricing rules.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from ..models.analytics import (
    ChartData,
    DailyStats,
    HourlyStats,
    ModelChartData,
    ProjectChartData,
)
from ..models.log_entry import UsageRecord
from ..pricing.rates import cost_of
from ..utils.data_source import DataSource


def _daily(entries: List[UsageRecord]) -> List[DailyStats]:
    daily_map: Dict[str, DailyStats] = {}
    for entry in entries:
        date_key = entry.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")
        daily = daily_map.get(date_key)
        if daily is None:
            daily = daily_map[date_key] = DailyStats(date=date_key)
        daily.input_tokens += entry.input_tokens
        daily.output_tokens += entry.output_tokens
        daily.cost += cost_of(entry)
        daily.messages += 1

    return sorted(daily_map.values(), key=lambda d: d.date)


def _hourly(entries: List[UsageRecord]) -> List[HourlyStats]:
    hourly_map: Dict[int, HourlyStats] = {}
    for entry in entries:
        hour = entry.timestamp.astimezone(timezone.utc).hour
        hourly = hourly_map.get(hour)
        if hourly is None:
            hourly = hourly_map[hour] = HourlyStats(hour=hour)
        hourly.tokens += entry.total_tokens
        hourly.messages += 1

    return sorted(hourly_map.values(), key=lambda h: h.hour)


def _totals_by(entries: List[UsageRecord], attr: str) -> List[Tuple[str, int, Decimal]]:
    """Group token and cost totals by a record attribute, largest first.

    Ties keep first-seen order since the sort is stable.
    """
    totals: Dict[str, List] = {}
    for entry in entries:
        key = getattr(entry, attr)
        bucket = totals.setdefault(key, [0, Decimal("0")])
        bucket[0] += entry.total_tokens
        bucket[1] += cost_of(entry)

    ordered = sorted(totals.items(), key=lambda item: item[1][0], reverse=True)
    return [(name, tokens, cost) for name, (tokens, cost) in ordered]


def build_chart_data(entries: List[UsageRecord]) -> ChartData:
    """Build the four chart series from one entry sequence.

    Args:
        entries: Usage records, usually bounded to a trailing day window

    Returns:
        ChartData with daily, hourly, per-model and per-project series
    """
    return ChartData(
        daily=_daily(entries),
        hourly=_hourly(entries),
        by_model=[
            ModelChartData(name=name, tokens=tokens, cost=cost)
            for name, tokens, cost in _totals_by(entries, "model")
        ],
        by_project=[
            ProjectChartData(name=name, tokens=tokens, cost=cost)
            for name, tokens, cost in _totals_by(entries, "project")
        ],
    )


def get_chart_data(
    source: DataSource, days: int, now: Optional[datetime] = None
) -> ChartData:
    """Read the trailing ``days`` of entries from a source and chart them."""
    return build_chart_data(source.read_entries(max_age_days=days, now=now))
