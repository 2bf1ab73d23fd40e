"""State/store layer.

Owns the shape of the target state and its migration path. The merge
and aggregation engines operate on :class:`TargetState` instances
produced here.
"""

from targetstate.state.migration import StateShape, classify_state, create_state, is_stale, migrate_state
from targetstate.state.store import TargetState

__all__ = [
    "StateShape",
    "TargetState",
    "classify_state",
    "create_state",
    "is_stale",
    "migrate_state",
]
