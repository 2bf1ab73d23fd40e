"""Emission normalization helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from targetstate.models._base import parse_identifier
from targetstate.models.emission import Emission

_logger = logging.getLogger(__name__)


def is_emission_batch(value: Any) -> bool:
    """Return True for a finite ordered sequence of emissions."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def normalize_emission(value: Any) -> Emission | None:
    """Parse one raw emission, ``None`` when it cannot be interpreted."""
    if isinstance(value, Emission):
        return value
    if not isinstance(value, Mapping):
        return None
    try:
        return Emission.model_validate(value)
    except ValidationError as exc:
        _logger.debug("Unparseable emission skipped: %s", exc.errors(include_url=False))
        return None


def normalize_contact_ids(contact_ids: Any) -> list[str] | None:
    """Normalize the contacts whose previous contributions are cancelled.

    ``None`` means every contact. A lone string or scalar is one id. Ids
    are normalized the same way as emission contact ids.
    """
    if contact_ids is None:
        return None
    if isinstance(contact_ids, str) or not isinstance(contact_ids, Iterable):
        contact_ids = [contact_ids]
    normalized = (parse_identifier(contact_id) for contact_id in contact_ids)
    return [contact_id for contact_id in normalized if contact_id is not None]
