"""Usage statistics aggregation for ccmeter.

Computes the full AggregatedStats bundle from the deduplicated entry stream
in a single pass.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Set, Tuple

import structlog

from ..models.analytics import AggregatedStats, ModelStats, ProjectStats
from ..models.log_entry import UsageRecord
from ..pricing.rates import cost_of

logger = structlog.get_logger()

SESSION_BLOCK_HOURS = 5
BURN_WINDOW = timedelta(minutes=30)

SessionBlockKey = Tuple[int, int, int, int]


def session_block_key(timestamp: datetime) -> SessionBlockKey:
    """Get the 5-hour session block a UTC timestamp falls into.

    Blocks are UTC aligned: hours 0-4 are block 0, 5-9 block 1 and so on,
    with the hour truncated rather than rounded.
    """
    ts = timestamp.astimezone(timezone.utc)
    return (ts.year, ts.month, ts.day, ts.hour // SESSION_BLOCK_HOURS)


def start_of_day(moment: datetime) -> datetime:
    """UTC midnight of the day containing ``moment``."""
    return moment.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )


def _add_usage(stats: ModelStats, entry: UsageRecord, cost: Decimal) -> None:
    stats.input_tokens += entry.input_tokens
    stats.output_tokens += entry.output_tokens
    stats.cache_creation_tokens += entry.cache_creation_tokens
    stats.cache_read_tokens += entry.cache_read_tokens
    stats.cost += cost
    stats.message_count += 1


def compute_stats(
    entries: Iterable[UsageRecord],
    now: Optional[datetime] = None,
) -> AggregatedStats:
    """Calculate statistics from usage entries.

    The reference instant, today's midnight, the current session block and
    the burn window start are fixed before the pass, so a wall-clock
    rollover mid-scan cannot split one pass across two days.

    Args:
        entries: Usage records, oldest first
        now: Reference time (defaults to current UTC time)

    Returns:
        Freshly built AggregatedStats
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    today_start = start_of_day(now)
    current_block = session_block_key(now)
    burn_window_start = now - BURN_WINDOW

    stats = AggregatedStats()
    session_blocks: Set[SessionBlockKey] = set()
    today_session_blocks: Set[SessionBlockKey] = set()

    burn_tokens = 0
    burn_cost = Decimal("0")
    burn_minutes = 0

    for entry in entries:
        cost = cost_of(entry)
        block = session_block_key(entry.timestamp)

        stats.total_input_tokens += entry.input_tokens
        stats.total_output_tokens += entry.output_tokens
        stats.total_cache_creation_tokens += entry.cache_creation_tokens
        stats.total_cache_read_tokens += entry.cache_read_tokens
        stats.total_cost += cost
        stats.total_messages_count += 1
        session_blocks.add(block)

        if entry.timestamp >= today_start:
            stats.today_input_tokens += entry.input_tokens
            stats.today_output_tokens += entry.output_tokens
            stats.today_cache_creation_tokens += entry.cache_creation_tokens
            stats.today_cache_read_tokens += entry.cache_read_tokens
            stats.today_cost += cost
            stats.today_messages_count += 1
            today_session_blocks.add(block)

        if block == current_block:
            stats.current_session_tokens += entry.total_tokens
            stats.current_session_cost += cost

        if entry.timestamp >= burn_window_start:
            burn_tokens += entry.total_tokens
            burn_cost += cost
            # The first record inside the window fixes the divisor.
            if burn_minutes == 0:
                elapsed = int((now - entry.timestamp).total_seconds() // 60)
                burn_minutes = max(elapsed, 1)

        model_stats = stats.by_model.get(entry.model)
        if model_stats is None:
            model_stats = stats.by_model[entry.model] = ModelStats()
        _add_usage(model_stats, entry, cost)

        project_stats = stats.by_project.get(entry.project)
        if project_stats is None:
            project_stats = stats.by_project[entry.project] = ProjectStats(
                name=entry.project
            )
        _add_usage(project_stats, entry, cost)

    stats.total_session_count = len(session_blocks)
    stats.today_session_count = len(today_session_blocks)

    if burn_minutes > 0:
        stats.tokens_per_minute = burn_tokens / burn_minutes
        stats.cost_per_hour = (burn_cost / burn_minutes) * 60

    stats.last_updated = now
    logger.debug(
        "stats computed",
        messages=stats.total_messages_count,
        models=len(stats.by_model),
        projects=len(stats.by_project),
    )
    return stats
