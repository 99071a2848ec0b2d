"""Claude model pricing.

All rates are USD per 1 million tokens. Cache write rates are for the
5-minute cache TTL; cache read rates cover cache hits and refreshes.
"""

from decimal import Decimal
from typing import List, Optional, Tuple, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..models.log_entry import UsageRecord


MILLION = Decimal("1000000")


class CostSchedule(BaseModel):
    """Per-million-token prices for the four token buckets."""

    model_config = ConfigDict(frozen=True)

    input: Decimal = Field(description="Cost per 1M input tokens")
    output: Decimal = Field(description="Cost per 1M output tokens")
    cache_read: Decimal = Field(description="Cost per 1M cache read tokens")
    cache_write: Decimal = Field(description="Cost per 1M cache write tokens")


class PricingRule(BaseModel):
    """A model family matched by case-insensitive substrings."""

    model_config = ConfigDict(frozen=True)

    name: str
    keywords: Tuple[str, ...] = ()
    schedule: CostSchedule

    def matches(self, model: str) -> bool:
        """Check whether this rule applies to a model name.

        A rule without keywords matches everything.
        """
        if not self.keywords:
            return True
        model_lower = model.lower()
        return any(keyword in model_lower for keyword in self.keywords)


def _schedule(input_rate: str, output_rate: str, read_rate: str, write_rate: str) -> CostSchedule:
    return CostSchedule(
        input=Decimal(input_rate),
        output=Decimal(output_rate),
        cache_read=Decimal(read_rate),
        cache_write=Decimal(write_rate),
    )


SONNET_SCHEDULE = _schedule("3.0", "15.0", "0.30", "3.75")

DEFAULT_RULE = PricingRule(name="Default (Sonnet pricing)", schedule=SONNET_SCHEDULE)

# Evaluated top to bottom: dated or point-release variants before their family.
PRICING_RULES: List[PricingRule] = [
    PricingRule(
        name="Claude Opus 4.5",
        keywords=("opus-4-5", "opus-4.5"),
        schedule=_schedule("5.0", "25.0", "0.50", "6.25"),
    ),
    PricingRule(
        name="Claude Opus 4 / 4.1 / 3",
        keywords=("opus",),
        schedule=_schedule("15.0", "75.0", "1.50", "18.75"),
    ),
    PricingRule(
        name="Claude Haiku 4.5",
        keywords=("haiku-4-5", "haiku-4.5"),
        schedule=_schedule("1.0", "5.0", "0.10", "1.25"),
    ),
    PricingRule(
        name="Claude Haiku 3.5",
        keywords=("haiku-3-5", "haiku-3.5"),
        schedule=_schedule("0.80", "4.0", "0.08", "1.0"),
    ),
    PricingRule(
        name="Claude Haiku 3",
        keywords=("haiku",),
        schedule=_schedule("0.25", "1.25", "0.03", "0.30"),
    ),
    PricingRule(
        name="Claude Sonnet 4 / 4.5 / 3.7",
        keywords=("sonnet",),
        schedule=SONNET_SCHEDULE,
    ),
    DEFAULT_RULE,
]


def rule_for(model: str, rules: Optional[List[PricingRule]] = None) -> PricingRule:
    """Find the first pricing rule matching a model name.

    Args:
        model: Model identifier as written in the logs
        rules: Rule list to search (defaults to PRICING_RULES)

    Returns:
        The matching rule, or DEFAULT_RULE when nothing matches
    """
    for rule in rules if rules is not None else PRICING_RULES:
        if rule.matches(model):
            return rule
    return DEFAULT_RULE


def schedule_for(model: str) -> CostSchedule:
    """Get the cost schedule for a model name. Never fails."""
    return rule_for(model).schedule


def calculate_cost(
    schedule: CostSchedule,
    input_tokens: int,
    output_tokens: int,
    cache_creation_tokens: int = 0,
    cache_read_tokens: int = 0,
) -> Decimal:
    """Calculate cost for token usage.

    Args:
        schedule: Prices to apply
        input_tokens: Input token count
        output_tokens: Output token count
        cache_creation_tokens: Cache write token count
        cache_read_tokens: Cache read token count

    Returns:
        Total cost in USD
    """
    cost = Decimal("0")

    cost += (Decimal(input_tokens) / MILLION) * schedule.input
    cost += (Decimal(output_tokens) / MILLION) * schedule.output
    cost += (Decimal(cache_read_tokens) / MILLION) * schedule.cache_read
    cost += (Decimal(cache_creation_tokens) / MILLION) * schedule.cache_write

    return cost


def cost_of(record: "UsageRecord", schedule: Optional[CostSchedule] = None) -> Decimal:
    """Calculate the cost of a usage record.

    Args:
        record: Parsed usage record
        schedule: Prices to apply (resolved from the record's model if None)

    Returns:
        Cost in USD
    """
    if schedule is None:
        schedule = schedule_for(record.model)
    return calculate_cost(
        schedule,
        record.input_tokens,
        record.output_tokens,
        record.cache_creation_tokens,
        record.cache_read_tokens,
    )


def get_all_pricing() -> List[PricingRule]:
    """Get all pricing rules for display, excluding the catch-all default."""
    return [rule for rule in PRICING_RULES if rule.keywords]
