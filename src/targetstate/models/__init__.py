"""Data models for target definitions, emissions and aggregates."""

from targetstate.models._base import (
    EpochMillis,
    OrderKey,
    TargetStateModel,
    parse_epoch_ms,
    parse_order_key,
)
from targetstate.models.aggregate import AggregatedTarget, AggregateSnapshot, FilterInterval, TargetValue
from targetstate.models.emission import Emission, EmissionContact, RequestorEntry
from targetstate.models.target import PassesIfGroupCount, TargetDefinition, TargetEntry

__all__ = [
    "AggregateSnapshot",
    "AggregatedTarget",
    "Emission",
    "EmissionContact",
    "EpochMillis",
    "FilterInterval",
    "OrderKey",
    "PassesIfGroupCount",
    "RequestorEntry",
    "TargetDefinition",
    "TargetEntry",
    "TargetStateModel",
    "TargetValue",
    "parse_epoch_ms",
    "parse_order_key",
]
