"""Portfolio valuation module."""

from .valuation import ValuationEngine, round_money, sum_money

__all__ = [
    "ValuationEngine",
    "round_money",
    "sum_money",
]
