"""targetstate - Deterministic in-memory target aggregation engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("targetstate")
except PackageNotFoundError:
    __version__ = "0+local"
from targetstate.aggregation import AggregateResult, aggregate
from targetstate.config import EngineConfig
from targetstate.engine import TargetStateEngine
from targetstate.exceptions import (
    InvalidArgumentError,
    StateMigrationError,
    TargetDefinitionError,
    TargetStateError,
)
from targetstate.ingestion import DropReason, MergeDiagnostics, store_emissions
from targetstate.models import (
    AggregatedTarget,
    AggregateSnapshot,
    Emission,
    FilterInterval,
    RequestorEntry,
    TargetDefinition,
    TargetEntry,
    TargetValue,
)
from targetstate.state import TargetState, create_state, is_stale, migrate_state

__all__ = [
    "__version__",
    "AggregateResult",
    "AggregateSnapshot",
    "AggregatedTarget",
    "DropReason",
    "Emission",
    "EngineConfig",
    "FilterInterval",
    "InvalidArgumentError",
    "MergeDiagnostics",
    "RequestorEntry",
    "StateMigrationError",
    "TargetDefinition",
    "TargetDefinitionError",
    "TargetEntry",
    "TargetState",
    "TargetStateEngine",
    "TargetStateError",
    "TargetValue",
    "aggregate",
    "create_state",
    "is_stale",
    "migrate_state",
    "store_emissions",
]
