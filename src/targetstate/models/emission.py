"""Emission events and their stored per-requestor projection."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from targetstate.models._base import (
    EpochMillis,
    GroupKey,
    Identifier,
    OrderKey,
    TargetStateModel,
    TruthyBool,
)


class RequestorEntry(TargetStateModel):
    """One emission as contributed by one reporting contact.

    Parameters
    ----------
    passed : bool
        Whether the contact satisfied the monitored condition.
    group_by : str or None
        Grouping key for threshold scoring.
    date : int, float or None
        Emission date in epoch milliseconds.
    order : int, float or None
        The contact's reported date, used only to pick one entry when
        several contacts report the same emission. ``None`` when the
        contact has no reported date.
    """

    passed: TruthyBool = Field(default=False, alias="pass")
    group_by: GroupKey = Field(
        default=None,
        validation_alias=AliasChoices("groupBy", "group_by"),
        serialization_alias="groupBy",
    )
    date: EpochMillis = None
    order: OrderKey = None


class EmissionContact(TargetStateModel):
    """The contact an emission was reported against."""

    id: Identifier = Field(default=None, validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    reported_date: OrderKey = None


class Emission(TargetStateModel):
    """A raw target emission as produced by the rules layer.

    Only the fields the merge engine reads are modelled; everything else
    on the incoming record is ignored.
    """

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"), serialization_alias="_id")
    type: Identifier = None
    contact: EmissionContact | None = None
    passed: TruthyBool = Field(default=False, alias="pass")
    date: EpochMillis = None
    group_by: GroupKey = Field(
        default=None,
        validation_alias=AliasChoices("groupBy", "group_by"),
        serialization_alias="groupBy",
    )
    deleted: TruthyBool = False

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("emission id must be non-empty")
        return value

    @field_validator("contact", mode="before")
    @classmethod
    def _drop_unusable_contact(cls, value: Any) -> Any:
        if isinstance(value, (Mapping, EmissionContact)):
            return value
        return None

    @property
    def requestor_id(self) -> str | None:
        """Id of the reporting contact, ``None`` when unresolvable."""
        if self.contact is None:
            return None
        return self.contact.id

    def to_requestor_entry(self) -> RequestorEntry:
        """Project this emission into the compact stored form."""
        return RequestorEntry(
            passed=self.passed,
            group_by=self.group_by,
            date=self.date,
            order=self.contact.reported_date if self.contact is not None else None,
        )
