"""Lane payload and lane state models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pysequencer.models.row import PendingContainer, SequenceRow


class LaneSnapshot(BaseModel):
    """One authoritative, normalized lane payload as returned by a fetch."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[SequenceRow, ...] = ()
    """Rows sorted newest first, deduplicated by id."""
    pending: tuple[PendingContainer, ...] = ()
    buffer: Any = None
    """Queue depth/capacity indicator; ``None`` when the payload omitted it."""


class LaneState(BaseModel):
    """What the store currently holds for one lane."""

    model_config = ConfigDict(frozen=True)

    rows: tuple[SequenceRow, ...] = ()
    pending: tuple[PendingContainer, ...] = ()
    buffer: Any = None
    generation: int = 0
    """Ticket of the fetch that produced this state (0 = never fetched)."""
    updated_at: datetime | None = Field(default=None)
