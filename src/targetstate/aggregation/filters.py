"""Date-window filtering for stored emissions."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from targetstate.models.aggregate import FilterInterval


def coerce_interval(value: Any) -> FilterInterval | None:
    """Accept a :class:`FilterInterval`, a ``{start, end}`` mapping or a pair.

    Anything else yields an interval with no bounds, which matches nothing.
    """
    if value is None or isinstance(value, FilterInterval):
        return value
    if isinstance(value, Mapping):
        return FilterInterval(start=value.get("start"), end=value.get("end"))
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
        return FilterInterval(start=value[0], end=value[1])
    return FilterInterval()


def in_interval(date: int | float | None, interval: FilterInterval | None) -> bool:
    """Inclusive on both bounds. No interval keeps everything."""
    if interval is None:
        return True
    if date is None or interval.start is None or interval.end is None:
        return False
    return interval.start <= date <= interval.end
