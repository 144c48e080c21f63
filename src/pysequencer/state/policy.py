"""Lane update acceptance policy.

Fetches are fire-and-forget and may complete out of order. Each fetch takes
a per-lane ticket before it is sent; a response is applied only when its
ticket is newer than the one that produced the current lane state.
"""

from __future__ import annotations


def should_accept_fetch(
    *,
    last_applied: int,
    incoming: int | None,
    discard_stale: bool,
) -> bool:
    """Decide whether a lane response should replace the current lane state.

    Policy:
    - Untracked responses (no ticket) are always applied.
    - With ``discard_stale`` off, every response wins (last write wins).
    - Otherwise only a ticket newer than the last applied one is accepted.
    """
    if incoming is None or not discard_stale:
        return True
    return incoming > last_applied
