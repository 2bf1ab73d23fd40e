"""Emission merge engine.

Incoming emission batches are applied in two phases:

1. *Clear*: everything previously contributed by the submitting contacts
   is removed ("cancelled emissions"), or everything when no contacts
   are given.
2. *Merge*: each usable emission is upserted as
   ``target.emissions[emission_id][contact_id]``.

Emissions referencing an unknown target, with no resolvable contact, or
flagged ``deleted`` are skipped without error.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from targetstate.config import DEFAULT_CONFIG, EngineConfig
from targetstate.exceptions import InvalidArgumentError
from targetstate.ingestion.diagnostics import DropHook, DropReason, MergeDiagnostics
from targetstate.ingestion.normalize import is_emission_batch, normalize_contact_ids, normalize_emission
from targetstate.models.emission import Emission
from targetstate.state.store import TargetState

_logger = logging.getLogger(__name__)


def clear_emissions(state: TargetState, contact_ids: list[str] | None, *, prune: bool = True) -> int:
    """Remove stored entries for *contact_ids* (all entries when ``None``).

    Returns the number of requestor entries removed.
    """
    removed = 0
    if contact_ids is None:
        for entry in state.targets.values():
            removed += entry.entry_count
            entry.emissions.clear()
        return removed

    for contact_id in contact_ids:
        for entry in state.targets.values():
            for emission_id in list(entry.emissions):
                requestors = entry.emissions[emission_id]
                if contact_id not in requestors:
                    continue
                del requestors[contact_id]
                removed += 1
                if prune and not requestors:
                    del entry.emissions[emission_id]
    return removed


def _drop_reason(state: TargetState, emission: Emission | None) -> DropReason | None:
    if emission is None:
        return DropReason.INVALID
    if emission.type is None or emission.type not in state.targets:
        return DropReason.UNKNOWN_TARGET
    if emission.requestor_id is None:
        return DropReason.MISSING_CONTACT
    if emission.deleted:
        return DropReason.DELETED
    return None


def _report_drop(
    reason: DropReason,
    raw: Any,
    diagnostics: MergeDiagnostics | None,
    on_drop: DropHook | None,
    log_dropped: bool,
) -> None:
    if diagnostics is not None:
        diagnostics.record_drop(reason)
    if log_dropped:
        _logger.debug("Emission skipped reason=%s emission=%r", reason, raw)
    if on_drop is None:
        return
    try:
        on_drop(reason, raw)
    except Exception:
        _logger.debug("on_drop callback failed", exc_info=True)


def merge_emissions(
    state: TargetState,
    emissions: Sequence[tuple[Any, Emission | None]],
    *,
    diagnostics: MergeDiagnostics | None = None,
    on_drop: DropHook | None = None,
    log_dropped: bool = False,
) -> bool:
    """Upsert normalized emissions. Returns True if any stored entry changed."""
    is_updated = False
    for raw, emission in emissions:
        reason = _drop_reason(state, emission)
        if reason is not None or emission is None:
            _report_drop(reason or DropReason.INVALID, raw, diagnostics, on_drop, log_dropped)
            continue

        target_id, requestor_id = str(emission.type), str(emission.requestor_id)
        requestors = state.targets[target_id].emissions.setdefault(emission.id, {})
        entry = emission.to_requestor_entry()
        if requestors.get(requestor_id) != entry:
            requestors[requestor_id] = entry
            is_updated = True
        if diagnostics is not None:
            diagnostics.stored += 1

    return is_updated


def store_emissions(
    state: TargetState,
    contact_ids: Any,
    emissions: Any,
    *,
    config: EngineConfig | None = None,
    diagnostics: MergeDiagnostics | None = None,
    on_drop: DropHook | None = None,
) -> bool:
    """Cancel the contacts' previous emissions, then merge the new batch.

    Parameters
    ----------
    state
        Target state, mutated in place.
    contact_ids
        Contacts whose previous contributions are cancelled. ``None``
        clears every stored entry.
    emissions
        Ordered sequence of emission records (mappings or
        :class:`~targetstate.models.emission.Emission`).

    Returns
    -------
    bool
        True when the clear or the merge phase changed at least one entry.

    Raises
    ------
    InvalidArgumentError
        If *emissions* is not a sequence. Raised before any mutation.
    """
    if not is_emission_batch(emissions):
        raise InvalidArgumentError(
            f"emissions must be a sequence, got {type(emissions).__name__}",
            argument="emissions",
        )
    config = config or DEFAULT_CONFIG
    contacts = normalize_contact_ids(contact_ids)
    normalized = [(raw, normalize_emission(raw)) for raw in emissions]

    removed = clear_emissions(state, contacts, prune=config.prune_empty_emissions)
    merged = merge_emissions(
        state,
        normalized,
        diagnostics=diagnostics,
        on_drop=on_drop,
        log_dropped=config.log_dropped_emissions,
    )

    if diagnostics is not None:
        diagnostics.merges += 1
        diagnostics.cleared += removed

    _logger.debug(
        "Stored emissions contacts=%s received=%d cleared=%d updated=%s",
        "all" if contacts is None else len(contacts),
        len(normalized),
        removed,
        bool(removed) or merged,
    )
    return bool(removed) or merged
