"""In-memory target state.

The state is owned by the caller and mutated in place by the merge
engine (emission maps) and by the aggregation engine (cached
aggregate). It is not thread-safe: callers serialize writers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from targetstate.models.aggregate import AggregateSnapshot
from targetstate.models.target import TargetEntry


class TargetState(BaseModel):
    """Target id -> target entry, plus the last cached aggregate.

    The persisted blob shape is ``{"targets": {...}, "aggregate": {...}}``
    where a never-computed aggregate is written as ``{}``.
    """

    model_config = ConfigDict(extra="ignore")

    targets: dict[str, TargetEntry] = Field(default_factory=dict)
    aggregate: AggregateSnapshot | None = None

    @field_validator("aggregate", mode="before")
    @classmethod
    def _empty_aggregate_is_none(cls, value: Any) -> Any:
        if not value:
            return None
        return value

    def requestor_ids(self) -> set[str]:
        """Every contact id that currently contributes at least one entry."""
        return {
            requestor_id
            for entry in self.targets.values()
            for requestors in entry.emissions.values()
            for requestor_id in requestors
        }

    def to_blob(self) -> dict[str, Any]:
        """JSON-safe dict suitable for external persistence."""
        return {
            "targets": {target_id: entry.to_dict() for target_id, entry in self.targets.items()},
            "aggregate": self.aggregate.to_dict() if self.aggregate is not None else {},
        }

    @classmethod
    def from_blob(cls, blob: Any) -> TargetState:
        """Rehydrate a persisted blob, migrating legacy shapes."""
        # Import lazily; migration depends on this module.
        from targetstate.state.migration import migrate_state

        return migrate_state(blob)
