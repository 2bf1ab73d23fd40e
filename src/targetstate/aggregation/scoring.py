"""Disambiguation and scoring of stored requestor entries."""

from __future__ import annotations

import math
from collections.abc import Iterable

from targetstate.models.aggregate import TargetValue
from targetstate.models.emission import RequestorEntry


def select_latest_entry(entries: Iterable[RequestorEntry]) -> RequestorEntry | None:
    """Pick the entry reported by the most recently reported contact.

    An entry with an order always beats one without; among ordered
    entries the strictly greatest order wins, so the first one
    encountered wins ties.
    """
    selected: RequestorEntry | None = None
    for entry in entries:
        if selected is None:
            selected = entry
            continue
        if entry.order is None:
            continue
        if selected.order is None or entry.order > selected.order:
            selected = entry
    return selected


def score_entries(entries: Iterable[RequestorEntry], group_threshold: int | None = None) -> TargetValue:
    """Count passing entries, or passing groups when a threshold is set.

    With a threshold, entries without a ``group_by`` key are ignored and a
    group passes when at least ``group_threshold`` of its entries pass.
    """
    if not group_threshold:
        passed = total = 0
        for entry in entries:
            total += 1
            if entry.passed:
                passed += 1
        return TargetValue(passed=passed, total=total)

    passed_by_group: dict[str, int] = {}
    for entry in entries:
        if not entry.group_by:
            continue
        passed_by_group.setdefault(entry.group_by, 0)
        if entry.passed:
            passed_by_group[entry.group_by] += 1

    return TargetValue(
        passed=sum(1 for count in passed_by_group.values() if count >= group_threshold),
        total=len(passed_by_group),
    )


def percent_of(passed: int, total: int) -> int:
    """Whole percentage, halves rounded up; 0 when there is nothing to score."""
    if not total:
        return 0
    return math.floor(passed * 100 / total + 0.5)
