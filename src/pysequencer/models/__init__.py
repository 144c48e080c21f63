"""Typed models for sequencer payloads and lane state."""

from pysequencer.models.lane import LaneSnapshot, LaneState
from pysequencer.models.row import PendingContainer, SequenceRow, WagonCapture

__all__ = [
    "LaneSnapshot",
    "LaneState",
    "PendingContainer",
    "SequenceRow",
    "WagonCapture",
]
