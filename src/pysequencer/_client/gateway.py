"""Transport adapter facade used by the scheduler and the client.

The endpoint functions in ``pysequencer._api`` raise typed errors. This
module is the boundary where those errors stop: every call returns a result
object, failures are logged, and the caller keeps its previous state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pysequencer._api import actions as _actions_api
from pysequencer._api import lanes as _lanes_api
from pysequencer._transport import Transport
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import SequencerError
from pysequencer.models.lane import LaneSnapshot
from pysequencer.state.events import Side

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaneFetchResult:
    side: Side
    snapshot: LaneSnapshot | None = None
    error: SequencerError | None = None

    @property
    def ok(self) -> bool:
        return self.snapshot is not None


@dataclass(frozen=True)
class ActionResult:
    name: str
    side: Side
    error: SequencerError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LaneGateway:
    """Performs lane fetches and control actions without raising."""

    def __init__(self, config: SequencerConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def fetch_lane(self, side: Side) -> LaneFetchResult:
        side = Side(side)
        try:
            snapshot = await _lanes_api.fetch_lane(self._config, self._transport, side)
        except SequencerError as exc:
            _logger.warning("fetch %s lane failed: %s", side, exc)
            return LaneFetchResult(side=side, error=exc)
        _logger.debug(
            "fetched %s lane rows=%d pending=%d buffer=%r",
            side,
            len(snapshot.rows),
            len(snapshot.pending),
            snapshot.buffer,
        )
        return LaneFetchResult(side=side, snapshot=snapshot)

    async def trigger_action(self, name: str, side: Side) -> ActionResult:
        side = Side(side)
        try:
            await _actions_api.trigger_action(self._config, self._transport, name, side)
        except SequencerError as exc:
            _logger.warning("%s on %s lane failed: %s", name, side, exc)
            return ActionResult(name=name, side=side, error=exc)
        _logger.debug("%s on %s lane accepted", name, side)
        return ActionResult(name=name, side=side)
