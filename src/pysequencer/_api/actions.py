"""Control action endpoints (flush)."""

from __future__ import annotations

from collections.abc import Mapping

from pysequencer._constants import ACTION_FLUSH
from pysequencer._transport import Transport
from pysequencer.config import SequencerConfig
from pysequencer.exceptions import SequencerConfigError, SequencerProtocolError
from pysequencer.state.events import Side

SUPPORTED_ACTIONS: frozenset[str] = frozenset({ACTION_FLUSH})


def action_endpoint(config: SequencerConfig, name: str, side: Side) -> str:
    if name == ACTION_FLUSH:
        return config.flush_endpoint(side)
    raise SequencerConfigError(f"Unknown action {name!r} (supported: {', '.join(sorted(SUPPORTED_ACTIONS))})")


async def trigger_action(config: SequencerConfig, transport: Transport, name: str, side: Side) -> None:
    """POST the control action *name* for *side*.

    An empty body is accepted; a JSON object with a falsy ``ok`` is not.
    """
    endpoint = action_endpoint(config, name, side)
    response = await transport.post_json(endpoint)
    if isinstance(response, Mapping) and "ok" in response and not response["ok"]:
        raise SequencerProtocolError(
            f"{name} on {endpoint} failed: {response.get('error') or response.get('message') or 'ok=false'}",
            endpoint=endpoint,
        )
