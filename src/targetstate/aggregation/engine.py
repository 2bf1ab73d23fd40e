"""Aggregation engine.

Rolls the stored emissions of every target up into a pass/total (and
percent) snapshot over an optional date window. With ``update_state``
the snapshot is cached on the state so the next call can tell whether
any score moved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from targetstate.aggregation.filters import coerce_interval, in_interval
from targetstate.aggregation.scoring import percent_of, score_entries, select_latest_entry
from targetstate.config import DEFAULT_CONFIG, EngineConfig
from targetstate.models.aggregate import AggregatedTarget, AggregateSnapshot, FilterInterval, TargetValue
from targetstate.models.emission import RequestorEntry
from targetstate.models.target import TargetEntry
from targetstate.state.store import TargetState

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregateResult:
    aggregate: AggregateSnapshot
    is_updated: bool


def relevant_entries(target: TargetEntry, interval: FilterInterval | None) -> list[RequestorEntry]:
    """One entry per emission id: the latest requestor's, within *interval*."""
    selected: list[RequestorEntry] = []
    for requestors in target.emissions.values():
        entry = select_latest_entry(e for e in requestors.values() if in_interval(e.date, interval))
        if entry is not None:
            selected.append(entry)
    return selected


def aggregate_target(
    target: TargetEntry,
    interval: FilterInterval | None,
    fields: tuple[str, ...] = DEFAULT_CONFIG.aggregate_fields,
) -> AggregatedTarget:
    value = score_entries(relevant_entries(target, interval), target.group_threshold)
    if target.is_percent:
        value = TargetValue(passed=value.passed, total=value.total, percent=percent_of(value.passed, value.total))

    descriptor = target.descriptor(fields)
    descriptor.setdefault("id", target.id)
    return AggregatedTarget.model_validate({**descriptor, "value": value})


def _has_changed(previous: AggregateSnapshot | None, current: AggregateSnapshot) -> bool:
    previous_values = previous.values_by_id() if previous is not None else {}
    for target in current.targets:
        cached = previous_values.get(target.id)
        if cached is None or cached.passed != target.value.passed or cached.total != target.value.total:
            return True
    return False


def aggregate(
    state: TargetState,
    filter_interval: Any = None,
    update_state: bool = False,
    *,
    config: EngineConfig | None = None,
) -> AggregateResult:
    """Score every target in *state* over *filter_interval*.

    Parameters
    ----------
    state
        A migrated target state.
    filter_interval
        Inclusive ``{start, end}`` window; ``None`` keeps every entry.
    update_state
        Cache the snapshot on ``state.aggregate`` and report whether any
        target's pass/total differs from the previously cached one.

    Returns
    -------
    AggregateResult
        The snapshot and the change flag (always False without
        ``update_state``).
    """
    config = config or DEFAULT_CONFIG
    interval = coerce_interval(filter_interval)
    snapshot = AggregateSnapshot(
        filter_interval=interval,
        targets=[aggregate_target(target, interval, config.aggregate_fields) for target in state.targets.values()],
    )

    if not update_state:
        return AggregateResult(aggregate=snapshot, is_updated=False)

    is_updated = _has_changed(state.aggregate, snapshot)
    state.aggregate = snapshot
    _logger.debug("Aggregated %d targets updated=%s", len(snapshot.targets), is_updated)
    return AggregateResult(aggregate=snapshot, is_updated=is_updated)
