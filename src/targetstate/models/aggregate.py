"""Aggregate snapshot models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, ConfigDict, Field

from targetstate.models._base import EpochMillis, TargetStateModel


class FilterInterval(TargetStateModel):
    """Inclusive date window, bounds in epoch milliseconds."""

    start: EpochMillis = None
    end: EpochMillis = None


class TargetValue(TargetStateModel):
    """Computed score for one target.

    ``percent`` is only set for percent-type targets.
    """

    passed: int = Field(default=0, alias="pass")
    total: int = 0
    percent: int | None = None


class AggregatedTarget(TargetStateModel):
    """Descriptive target fields plus the computed ``value``."""

    model_config = ConfigDict(extra="allow")

    id: str
    type: str | None = None
    goal: int | float | None = None
    translation_key: str | None = None
    name: Any = None
    icon: str | None = None
    subtitle_translation_key: str | None = None
    visible: bool | None = None
    value: TargetValue = Field(default_factory=TargetValue)


class AggregateSnapshot(TargetStateModel):
    """Point-in-time scores for every target, in target-state order."""

    filter_interval: FilterInterval | None = Field(
        default=None,
        validation_alias=AliasChoices("filterInterval", "filter_interval"),
        serialization_alias="filterInterval",
    )
    targets: list[AggregatedTarget] = Field(default_factory=list)

    def find(self, target_id: str) -> AggregatedTarget | None:
        for target in self.targets:
            if target.id == target_id:
                return target
        return None

    def values_by_id(self) -> dict[str, TargetValue]:
        return {target.id: target.value for target in self.targets}
