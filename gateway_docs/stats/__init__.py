"""Invocation statistics."""

from .invocation_stats import (
    InvocationStatsAggregator,
    InvocationSeries,
    date_range,
    decode_counts,
    validate_date,
)

__all__ = [
    "InvocationStatsAggregator",
    "InvocationSeries",
    "date_range",
    "decode_counts",
    "validate_date",
]
