"""Sequence row and pending container models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pysequencer.ingestion.normalize import to_epoch_ms
from pysequencer.models._base import Identifier, OptionalText, SequencerBaseModel, TimestampValue


class WagonCapture(SequencerBaseModel):
    """Raw capture record attached to a row by the wagon camera."""

    time: TimestampValue = Field(default=None, validation_alias=AliasChoices("time", "ts", "timestamp"))
    """Authoritative capture time."""
    wagon_no: OptionalText = Field(default=None, validation_alias=AliasChoices("wagon_no", "wagonNumber"))

    @model_validator(mode="before")
    @classmethod
    def _wrap_scalar(cls, values: Any) -> Any:
        # Some payloads send the capture time itself instead of a record.
        if isinstance(values, (int, float, str)) and not isinstance(values, bool):
            return {"time": values}
        return values


class SequenceRow(SequencerBaseModel):
    """One sequencing event for one lane.

    A row with ``finalized_at`` is *final*; without it the row is *tentative*
    and may still change.
    """

    id: Identifier = None
    wagon_no: OptionalText = Field(default=None, validation_alias=AliasChoices("wagon_no", "wagonNumber", "wagonNo"))
    train_no: OptionalText = Field(default=None, validation_alias=AliasChoices("train_no", "trainNumber", "trainNo"))
    side: OptionalText = None
    container_no_1: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("container_no_1", "containerNumber1", "containerNo1"),
    )
    iso_code_1: OptionalText = Field(default=None, validation_alias=AliasChoices("iso_code_1", "isoCode1"))
    container_no_2: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("container_no_2", "containerNumber2", "containerNo2"),
    )
    iso_code_2: OptionalText = Field(default=None, validation_alias=AliasChoices("iso_code_2", "isoCode2"))
    wagon_no_img: OptionalText = Field(default=None, validation_alias=AliasChoices("wagon_no_img", "wagonNoImg"))
    container_no_img_1: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("container_no_img_1", "containerNoImg1"),
    )
    container_no_img_2: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("container_no_img_2", "containerNoImg2"),
    )
    finalized_at: TimestampValue = Field(default=None, validation_alias=AliasChoices("finalizedAt", "finalized_at"))
    time: TimestampValue = None
    created_at: TimestampValue = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))
    wagon_raw: WagonCapture | None = Field(
        default=None,
        validation_alias=AliasChoices("wagonRaw", "rawWagonTime", "wagon_raw"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @property
    def is_final(self) -> bool:
        return self.finalized_at is not None

    @property
    def is_tentative(self) -> bool:
        return self.finalized_at is None

    @property
    def searchable_text(self) -> str:
        """Lower-cased concatenation of the fields operators search by."""
        parts = (
            self.id,
            self.wagon_no,
            self.train_no,
            self.side,
            self.container_no_1,
            self.iso_code_1,
            self.container_no_2,
            self.iso_code_2,
        )
        return " ".join(str(part) for part in parts if part is not None).lower()


class PendingContainer(SequencerBaseModel):
    """A container detection not yet attached to a finalized row."""

    id: Identifier = None
    container_number: OptionalText = Field(
        default=None,
        validation_alias=AliasChoices("containerNumber", "container_number", "container_no"),
    )
    ts_raw: OptionalText = Field(default=None, validation_alias=AliasChoices("tsRaw", "ts_raw"))
    time: float | None = None
    """Detection time in epoch milliseconds."""

    @model_validator(mode="before")
    @classmethod
    def _parse_time(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        parsed = to_epoch_ms(merged.get("time"))
        if parsed is None:
            parsed = to_epoch_ms(merged.get("tsRaw", merged.get("ts_raw")))
        merged["time"] = parsed
        merged.setdefault("raw", dict(values))
        return merged
