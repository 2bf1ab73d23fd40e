"""Aggregation layer: scores stored emissions into target snapshots."""

from targetstate.aggregation.engine import AggregateResult, aggregate, aggregate_target, relevant_entries
from targetstate.aggregation.filters import coerce_interval, in_interval
from targetstate.aggregation.scoring import percent_of, score_entries, select_latest_entry

__all__ = [
    "AggregateResult",
    "aggregate",
    "aggregate_target",
    "coerce_interval",
    "in_interval",
    "percent_of",
    "relevant_entries",
    "score_entries",
    "select_latest_entry",
]
