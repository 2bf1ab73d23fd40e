"""Constants shared across the target-state engine."""

from __future__ import annotations

# Descriptive target fields copied onto every aggregated target.
AGGREGATE_FIELDS: tuple[str, ...] = (
    "id",
    "type",
    "goal",
    "translation_key",
    "name",
    "icon",
    "subtitle_translation_key",
    "visible",
)

PERCENT_TARGET_TYPE = "percent"
