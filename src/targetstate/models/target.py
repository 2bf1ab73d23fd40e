"""Target definitions and their stored state entries."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from targetstate._constants import PERCENT_TARGET_TYPE
from targetstate.models._base import TargetStateModel
from targetstate.models.emission import RequestorEntry


class PassesIfGroupCount(TargetStateModel):
    """Group threshold: a group passes when it has at least ``gte`` passing entries."""

    gte: int | None = None


class TargetDefinition(BaseModel):
    """A monitored metric definition.

    Display metadata is carried through untouched. Keys not modelled here
    (``context``, ``appliesTo``, ...) are kept as extras so they survive a
    round trip through the persisted state.

    Parameters
    ----------
    id : str
        Target id. Emissions reference it through their ``type``.
    type : str or None
        ``"count"``, ``"percent"`` or any other caller-defined type.
    goal : int, float or None
        Display goal; not used for scoring.
    passes_if_group_count : PassesIfGroupCount or None
        Enables group-threshold scoring when ``gte`` is set.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    type: str | None = None
    goal: int | float | None = None
    translation_key: str | None = None
    name: Any = None
    icon: str | None = None
    subtitle_translation_key: str | None = None
    visible: bool | None = None
    passes_if_group_count: PassesIfGroupCount | None = Field(
        default=None,
        validation_alias=AliasChoices("passesIfGroupCount", "passes_if_group_count"),
        serialization_alias="passesIfGroupCount",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("target id must be non-empty")
        return value

    @property
    def group_threshold(self) -> int | None:
        """The group pass threshold, ``None`` when plain counting applies."""
        if self.passes_if_group_count is None:
            return None
        return self.passes_if_group_count.gte or None

    @property
    def is_percent(self) -> bool:
        return self.type == PERCENT_TARGET_TYPE

    def descriptor(self, fields: tuple[str, ...]) -> dict[str, Any]:
        """Return the subset of *fields* this definition actually sets."""
        extra = self.model_extra or {}
        picked: dict[str, Any] = {}
        for name in fields:
            if name in type(self).model_fields:
                value = getattr(self, name)
            else:
                value = extra.get(name)
            if value is not None:
                picked[name] = value
        return picked

    def definition_dict(self) -> dict[str, Any]:
        """The definition as a plain dict, using wire names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"emissions"})


class TargetEntry(TargetDefinition):
    """A target definition plus its stored emissions.

    ``emissions`` maps emission id -> requestor (contact) id -> entry.
    At most one entry exists per (emission id, requestor id) pair.
    """

    emissions: dict[str, dict[str, RequestorEntry]] = Field(default_factory=dict)

    @property
    def entry_count(self) -> int:
        return sum(len(requestors) for requestors in self.emissions.values())

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
