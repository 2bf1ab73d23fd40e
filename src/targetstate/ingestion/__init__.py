"""Ingestion layer.

Normalizes incoming emission batches and merges them into a
:class:`~targetstate.state.store.TargetState`.
"""

from targetstate.ingestion.diagnostics import DropHook, DropReason, MergeDiagnostics
from targetstate.ingestion.merge import clear_emissions, merge_emissions, store_emissions
from targetstate.ingestion.normalize import is_emission_batch, normalize_contact_ids, normalize_emission

__all__ = [
    "DropHook",
    "DropReason",
    "MergeDiagnostics",
    "clear_emissions",
    "is_emission_batch",
    "merge_emissions",
    "normalize_contact_ids",
    "normalize_emission",
    "store_emissions",
]
