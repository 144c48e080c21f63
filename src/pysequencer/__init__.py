"""pysequencer - Async realtime client for wagon/container sequencing lanes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pysequencer")
except PackageNotFoundError:
    __version__ = "0+local"
from pysequencer.client import SequencerClient
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import (
    SequencerChannelError,
    SequencerConfigError,
    SequencerError,
    SequencerProtocolError,
    SequencerTransportError,
)
from pysequencer.models import LaneSnapshot, LaneState, PendingContainer, SequenceRow, WagonCapture
from pysequencer.state.events import ConnectionStatus, RefreshIntent, Side
from pysequencer.state.view import LaneView, ViewState

__all__ = [
    "__version__",
    "ConnectionStatus",
    "LaneSnapshot",
    "LaneState",
    "LaneView",
    "PendingContainer",
    "RefreshIntent",
    "SequenceRow",
    "SequencerChannelError",
    "SequencerClient",
    "SequencerConfig",
    "SequencerConfigError",
    "SequencerError",
    "SequencerProtocolError",
    "SequencerTransportError",
    "Side",
    "ViewState",
    "WagonCapture",
]
