"""Shared model plumbing for target-state payloads.

Emission batches come from a partially-synced, multi-device environment,
so the coercions here never raise: a value that cannot be interpreted
becomes ``None`` and the field default applies.

* :data:`EpochMillis` accepts epoch milliseconds, ``datetime``/``date``
  objects and ISO-8601 strings and normalizes them to epoch milliseconds.
* :data:`OrderKey` is an :data:`EpochMillis` whose negative values (the
  legacy ``-1`` "no reported date" sentinel) become ``None``.
* :data:`TruthyBool` follows plain truthiness.
* :data:`GroupKey` maps falsy grouping keys to ``None`` and stringifies
  the rest, matching how grouping keys behave as mapping keys.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, time
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict


def _datetime_to_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return round(value.timestamp() * 1000)


def parse_epoch_ms(value: Any) -> int | float | None:
    """Best-effort conversion of a timestamp-like value to epoch milliseconds.

    Returns ``None`` for anything that is missing or cannot be interpreted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return value
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    if isinstance(value, date):
        return _datetime_to_ms(datetime.combine(value, time.min, tzinfo=UTC))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            pass
        else:
            return parse_epoch_ms(int(number) if number.is_integer() else number)
        try:
            return _datetime_to_ms(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def parse_order_key(value: Any) -> int | float | None:
    parsed = parse_epoch_ms(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def parse_truthy(value: Any) -> bool:
    return bool(value)


def parse_group_key(value: Any) -> str | None:
    if not value:
        return None
    return str(value)


def parse_identifier(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        text = str(value).strip()
        return text or None
    return None


EpochMillis = Annotated[int | float | None, BeforeValidator(parse_epoch_ms)]
"""Timestamp normalized to epoch milliseconds, ``None`` when unparseable."""

OrderKey = Annotated[int | float | None, BeforeValidator(parse_order_key)]
"""Disambiguation key; ``None`` means "no order" and loses to any order."""

TruthyBool = Annotated[bool, BeforeValidator(parse_truthy)]

GroupKey = Annotated[str | None, BeforeValidator(parse_group_key)]

Identifier = Annotated[str | None, BeforeValidator(parse_identifier)]


class TargetStateModel(BaseModel):
    """Base for the engine's value objects.

    Values are immutable and populated by either field name or alias;
    unknown keys are ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe dict using the wire (alias) names, ``None`` fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
