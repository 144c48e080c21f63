"""Lane fetch endpoint."""

from __future__ import annotations

from pysequencer._transport import Transport
from pysequencer.config import SequencerConfig
from pysequencer.ingestion.rows import normalize_lane_payload
from pysequencer.models.lane import LaneSnapshot
from pysequencer.state.events import Side


async def fetch_lane(config: SequencerConfig, transport: Transport, side: Side) -> LaneSnapshot:
    """GET the lane endpoint for *side* and normalize the payload.

    Raises
    ------
    SequencerTransportError
        Network/HTTP failure, or (as :class:`SequencerProtocolError`) a
        payload that is malformed or reports ``ok`` falsy.
    """
    endpoint = config.lane_endpoint(side)
    payload = await transport.get_json(endpoint)
    return normalize_lane_payload(payload, endpoint=endpoint)
