"""State creation and schema migration.

A persisted blob is either *fresh* (``{"targets": ..., "aggregate": ...}``)
or *legacy*: the bare target map written before the aggregate cache
existed. :func:`migrate_state` turns either into a :class:`TargetState`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from targetstate.exceptions import StateMigrationError, TargetDefinitionError
from targetstate.models.aggregate import AggregateSnapshot
from targetstate.models.target import TargetDefinition, TargetEntry
from targetstate.state.store import TargetState

_logger = logging.getLogger(__name__)


class StateShape(StrEnum):
    FRESH = "fresh"
    LEGACY = "legacy"


def create_state(definitions: Iterable[TargetDefinition | Mapping[str, Any]] | None = None) -> TargetState:
    """Build an empty state with one entry per target definition.

    Raises
    ------
    TargetDefinitionError
        If a definition cannot be parsed.
    """
    state = TargetState()
    for index, definition in enumerate(definitions or ()):
        try:
            parsed = (
                definition if isinstance(definition, TargetDefinition) else TargetDefinition.model_validate(definition)
            )
        except ValidationError as exc:
            raise TargetDefinitionError(f"Invalid target definition at index {index}: {exc}", index=index) from exc
        state.targets[parsed.id] = TargetEntry.model_validate({**parsed.definition_dict(), "emissions": {}})
    return state


def is_stale(state: Any) -> bool:
    """Return True when *state* lacks either ``targets`` or ``aggregate``."""
    if isinstance(state, TargetState):
        return False
    if not isinstance(state, Mapping):
        return True
    return state.get("targets") is None or state.get("aggregate") is None


def classify_state(state: Any) -> StateShape:
    return StateShape.LEGACY if is_stale(state) else StateShape.FRESH


def _usable_emissions(target_key: Any, raw_emissions: Any) -> dict[str, dict[str, Any]]:
    """Keep the emission id -> requestor id -> entry leaves that are mappings."""
    if raw_emissions is None:
        return {}
    if not isinstance(raw_emissions, Mapping):
        _logger.warning("Dropping emissions of target %r during migration: not a mapping", target_key)
        return {}
    emissions: dict[str, dict[str, Any]] = {}
    for emission_id, requestors in raw_emissions.items():
        if not isinstance(requestors, Mapping):
            _logger.warning("Dropping emission %r of target %r during migration", emission_id, target_key)
            continue
        kept: dict[str, Any] = {}
        for requestor_id, entry in requestors.items():
            if not isinstance(entry, Mapping):
                _logger.warning(
                    "Dropping entry %r of emission %r, target %r during migration",
                    requestor_id,
                    emission_id,
                    target_key,
                )
                continue
            kept[str(requestor_id)] = entry
        emissions[str(emission_id)] = kept
    return emissions


def _parse_targets(raw_targets: Mapping[Any, Any]) -> dict[str, TargetEntry]:
    """Parse a target map, keeping every target and emission leaf that is readable."""
    targets: dict[str, TargetEntry] = {}
    for key, value in raw_targets.items():
        if not isinstance(value, Mapping):
            _logger.warning("Dropping target %r during migration: not a mapping", key)
            continue
        data = dict(value)
        data.setdefault("id", key)
        data["emissions"] = _usable_emissions(key, data.get("emissions"))
        try:
            targets[str(key)] = TargetEntry.model_validate(data)
        except ValidationError:
            _logger.warning("Dropping unreadable target %r during migration", key, exc_info=True)
    return targets


def _parse_aggregate(raw_aggregate: Any) -> AggregateSnapshot | None:
    if not raw_aggregate:
        return None
    try:
        return AggregateSnapshot.model_validate(raw_aggregate)
    except ValidationError:
        _logger.debug("Discarding unreadable cached aggregate", exc_info=True)
        return None


def migrate_state(state: Any) -> TargetState:
    """Upgrade a persisted blob to the current state shape.

    A :class:`TargetState` is returned unchanged. A legacy blob is wrapped
    as the new target map, keeping every target (and its emissions) that
    can be read, with an empty aggregate.

    Raises
    ------
    StateMigrationError
        If *state* is neither ``None``, a mapping, nor a :class:`TargetState`.
    """
    if isinstance(state, TargetState):
        return state
    if state is None:
        return TargetState()
    if not isinstance(state, Mapping):
        raise StateMigrationError(f"Cannot migrate state of type {type(state).__name__}")

    if classify_state(state) is StateShape.FRESH:
        if not isinstance(state["targets"], Mapping):
            _logger.warning("Discarding state with unreadable targets of type %s", type(state["targets"]).__name__)
            return TargetState()
        return TargetState(
            targets=_parse_targets(state["targets"]),
            aggregate=_parse_aggregate(state["aggregate"]),
        )

    raw_targets = state.get("targets")
    if not isinstance(raw_targets, Mapping):
        raw_targets = state
    _logger.debug("Migrating legacy target state with %d targets", len(raw_targets))
    return TargetState(targets=_parse_targets(raw_targets))
