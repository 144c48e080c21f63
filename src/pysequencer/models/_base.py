"""Base model for sequencer payloads.

Every row-level model inherits from :class:`SequencerBaseModel` which
provides:

* Sentinel stripping: ``""``, ``"--"``, ``"null"`` and NaN are dropped so the
  field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

from pysequencer.ingestion.normalize import is_blank, safe_str

OptionalText = Annotated[str | None, BeforeValidator(safe_str)]
"""Annotated type that coerces numbers to text and blanks to ``None``."""

Identifier = int | str | None
TimestampValue = int | float | str | None


class SequencerBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if is_blank(value):
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        # Keep an explicitly passed raw= (keyword construction).
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
