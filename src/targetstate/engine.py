"""High-level facade over the target-state store, merge and aggregation layers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from targetstate.aggregation.engine import AggregateResult, aggregate
from targetstate.config import EngineConfig
from targetstate.ingestion.diagnostics import DropHook, MergeDiagnostics
from targetstate.ingestion.merge import store_emissions
from targetstate.models.target import TargetDefinition
from targetstate.state.migration import create_state, migrate_state
from targetstate.state.store import TargetState

_logger = logging.getLogger(__name__)


class TargetStateEngine:
    """Owns one :class:`TargetState` and applies engine operations to it.

    The engine does no locking. Callers route every mutating call
    (``store_emissions`` and ``aggregate(update_state=True)``) for one
    engine through a single writer.

    Parameters
    ----------
    state
        A migrated target state.
    config
        Engine configuration. Defaults to :meth:`EngineConfig.from_env`.
    on_drop
        Optional callback invoked for every emission skipped during a merge.
    """

    def __init__(
        self,
        state: TargetState,
        *,
        config: EngineConfig | None = None,
        on_drop: DropHook | None = None,
    ) -> None:
        self._state = state
        self._config = config or EngineConfig.from_env()
        self._on_drop = on_drop
        self.diagnostics = MergeDiagnostics()

    @classmethod
    def from_definitions(
        cls,
        definitions: Iterable[TargetDefinition | Mapping[str, Any]],
        **kwargs: Any,
    ) -> TargetStateEngine:
        """Create an engine over a fresh state for *definitions*."""
        return cls(create_state(definitions), **kwargs)

    @classmethod
    def from_blob(cls, blob: Any, **kwargs: Any) -> TargetStateEngine:
        """Create an engine over a persisted (possibly legacy) state blob."""
        return cls(migrate_state(blob), **kwargs)

    @property
    def state(self) -> TargetState:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._config

    def store_emissions(self, contact_ids: Any, emissions: Any) -> bool:
        """Cancel *contact_ids*' previous emissions and merge *emissions*."""
        return store_emissions(
            self._state,
            contact_ids,
            emissions,
            config=self._config,
            diagnostics=self.diagnostics,
            on_drop=self._on_drop,
        )

    def aggregate(self, filter_interval: Any = None, update_state: bool = False) -> AggregateResult:
        return aggregate(self._state, filter_interval, update_state, config=self._config)

    def to_blob(self) -> dict[str, Any]:
        blob = self._state.to_blob()
        _logger.debug("Serialized target state with %d targets", len(blob["targets"]))
        return blob
