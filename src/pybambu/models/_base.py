"""Base model for printer report payloads.

Every report model inherits from :class:`BambuBaseModel` which provides:

* ``extra="ignore"`` so firmware-specific keys never break decoding.
* A ``model_validator(mode="before")`` that strips ``None`` and empty-string
  values so the field default (``None``, meaning "not reported") is used.
* Frozen instances, so a merged snapshot can be shared between threads.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# Sentinel values the printer uses for "not reported".
_SENTINELS = frozenset({""})


class BambuBaseModel(BaseModel):
    """Base for printer report models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_report_values(cls, values: Any) -> Any:
        """Drop sentinel values so the field default is used."""
        if not isinstance(values, dict):
            return values
        return BambuBaseModel._clean_dict(values)
