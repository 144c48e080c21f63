"""Row ordering and lane payload normalization.

Rows are ordered newest first by a canonical timestamp resolved with a fixed
priority: raw capture time, then ``time``, then ``finalizedAt``, then
``createdAt``, then a numeric ``id``, then ``0``. Sorting is stable and never
touches the caller's sequence, so normalizing twice gives the same result.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from pysequencer.exceptions import SequencerProtocolError
from pysequencer.ingestion.normalize import as_list, safe_float, to_epoch_ms
from pysequencer.models.lane import LaneSnapshot
from pysequencer.models.row import PendingContainer, SequenceRow

_logger = logging.getLogger(__name__)


def canonical_timestamp(row: SequenceRow) -> float:
    """Resolve the ordering timestamp of *row* in epoch milliseconds.

    Always returns a number; unresolvable rows order as ``0``.
    """
    candidates = (
        row.wagon_raw.time if row.wagon_raw is not None else None,
        row.time,
        row.finalized_at,
        row.created_at,
    )
    for candidate in candidates:
        resolved = to_epoch_ms(candidate)
        if resolved is not None:
            return resolved
    numeric_id = safe_float(row.id)
    if numeric_id is not None:
        return numeric_id
    return 0.0


def sort_rows(rows: Iterable[SequenceRow]) -> list[SequenceRow]:
    """Return a new list sorted by canonical timestamp, newest first.

    ``sorted`` is stable with ``reverse=True`` too, so ties keep input order.
    """
    return sorted(rows, key=canonical_timestamp, reverse=True)


def dedupe_rows(rows: Iterable[SequenceRow]) -> list[SequenceRow]:
    """Drop later rows that repeat an earlier row's id. Rows without id are kept."""
    seen: set[tuple[type, Any]] = set()
    unique: list[SequenceRow] = []
    for row in rows:
        if row.id is not None:
            key = (type(row.id), row.id)
            if key in seen:
                continue
            seen.add(key)
        unique.append(row)
    return unique


def _parse_row(item: Any) -> SequenceRow | None:
    if isinstance(item, SequenceRow):
        return item
    if not isinstance(item, Mapping):
        _logger.debug("Skipping non-object row: %r", type(item).__name__)
        return None
    try:
        return SequenceRow.model_validate(dict(item))
    except ValidationError:
        _logger.debug("Skipping invalid row id=%r", item.get("id"), exc_info=True)
        return None


def normalize_rows(raw_rows: Any) -> list[SequenceRow]:
    """Parse, order and deduplicate a raw row array.

    Anything that is not an array yields an empty list. Accepts already
    parsed :class:`SequenceRow` items, which makes the operation idempotent.
    """
    parsed = [row for row in (_parse_row(item) for item in as_list(raw_rows)) if row is not None]
    return dedupe_rows(sort_rows(parsed))


def normalize_pending(raw_pending: Any) -> list[PendingContainer]:
    """Parse a raw pending-container array, keeping source order."""
    items: list[PendingContainer] = []
    for item in as_list(raw_pending):
        if isinstance(item, PendingContainer):
            items.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        try:
            items.append(PendingContainer.model_validate(dict(item)))
        except ValidationError:
            _logger.debug("Skipping invalid pending container id=%r", item.get("id"), exc_info=True)
    return items


def normalize_lane_payload(payload: Any, *, endpoint: str = "") -> LaneSnapshot:
    """Validate a ``{ok, rows, pendingContainers, buffer}`` payload.

    Raises
    ------
    SequencerProtocolError
        When *payload* is not an object or ``ok`` is falsy.
    """
    if not isinstance(payload, Mapping):
        raise SequencerProtocolError(
            f"Lane payload from {endpoint or 'backend'} is not an object",
            endpoint=endpoint,
        )
    if not payload.get("ok"):
        raise SequencerProtocolError(
            f"Lane payload from {endpoint or 'backend'} reported ok={payload.get('ok')!r}",
            endpoint=endpoint,
        )
    return LaneSnapshot(
        rows=tuple(normalize_rows(payload.get("rows"))),
        pending=tuple(normalize_pending(payload.get("pendingContainers"))),
        buffer=payload.get("buffer"),
    )
