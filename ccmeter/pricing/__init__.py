"""Pricing module for ccmeter.

Maps Claude model names to per-token price schedules through an ordered
list of substring rules.
"""

from .rates import (
    CostSchedule,
    PricingRule,
    PRICING_RULES,
    calculate_cost,
    cost_of,
    get_all_pricing,
    rule_for,
    schedule_for,
)

__all__ = [
    "CostSchedule",
    "PricingRule",
    "PRICING_RULES",
    "calculate_cost",
    "cost_of",
    "get_all_pricing",
    "rule_for",
    "schedule_for",
]
