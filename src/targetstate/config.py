"""Engine configuration for targetstate."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from targetstate._constants import AGGREGATE_FIELDS


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_fields(value: str | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    fields = tuple(part.strip() for part in value.split(",") if part.strip())
    return fields or None


@dataclasses.dataclass(frozen=True)
class EngineConfig:
    """Engine configuration.

    Parameters
    ----------
    aggregate_fields : tuple of str
        Descriptive target fields copied onto each aggregated target.
        Only fields the target definition actually sets are copied.
    prune_empty_emissions : bool
        Drop emission ids whose requestor map became empty after a
        contact's contributions were cancelled.
    log_dropped_emissions : bool
        Emit a DEBUG log line for every emission skipped during a merge.
    """

    aggregate_fields: tuple[str, ...] = AGGREGATE_FIELDS
    prune_empty_emissions: bool = True
    log_dropped_emissions: bool = False

    @classmethod
    def from_env(cls, **overrides: Any) -> EngineConfig:
        """Create configuration from environment variables.

        Reads ``TARGETSTATE_AGGREGATE_FIELDS`` (comma separated),
        ``TARGETSTATE_PRUNE_EMPTY_EMISSIONS`` and
        ``TARGETSTATE_LOG_DROPPED_EMISSIONS``. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        EngineConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        fields = _env_fields(env.get("TARGETSTATE_AGGREGATE_FIELDS"))
        if fields is not None and "aggregate_fields" not in overrides:
            config_kwargs["aggregate_fields"] = fields

        if "prune_empty_emissions" not in overrides:
            config_kwargs["prune_empty_emissions"] = _env_bool(
                env.get("TARGETSTATE_PRUNE_EMPTY_EMISSIONS"),
                True,
            )

        if "log_dropped_emissions" not in overrides:
            config_kwargs["log_dropped_emissions"] = _env_bool(
                env.get("TARGETSTATE_LOG_DROPPED_EMISSIONS"),
                False,
            )

        aggregate_fields = overrides.get("aggregate_fields")
        if aggregate_fields is not None:
            overrides["aggregate_fields"] = tuple(aggregate_fields)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)


DEFAULT_CONFIG = EngineConfig()
