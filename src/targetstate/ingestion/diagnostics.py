"""Observability for emissions skipped during a merge.

Skipping broken emissions is part of the merge contract; these counters
only make the skips visible to the caller.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class DropReason(StrEnum):
    INVALID = "invalid"
    UNKNOWN_TARGET = "unknown_target"
    MISSING_CONTACT = "missing_contact"
    DELETED = "deleted"


DropHook = Callable[[DropReason, Any], None]
"""Called with the reason and the original (un-normalized) emission."""


@dataclass
class MergeDiagnostics:
    """Running counters across merge calls."""

    merges: int = 0
    stored: int = 0
    cleared: int = 0
    dropped: Counter[DropReason] = field(default_factory=Counter)

    def record_drop(self, reason: DropReason) -> None:
        self.dropped[reason] += 1

    @property
    def total_dropped(self) -> int:
        return sum(self.dropped.values())

    def reset(self) -> None:
        self.merges = 0
        self.stored = 0
        self.cleared = 0
        self.dropped.clear()

    def as_dict(self) -> dict[str, Any]:
        return {
            "merges": self.merges,
            "stored": self.stored,
            "cleared": self.cleared,
            "dropped": {reason.value: self.dropped.get(reason, 0) for reason in DropReason},
        }
