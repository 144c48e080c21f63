"""Normalization helpers.

Centralizes lenient parsing of the loosely typed values the backend sends.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

_SENTINELS = frozenset({"", "--", "null", "undefined"})


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value.strip() in _SENTINELS


def safe_float(value: Any) -> float | None:
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if is_blank(value):
        return None
    text = str(value).strip()
    return text if text else None


def as_list(value: Any) -> list[Any]:
    """Return *value* as a list, or an empty list when it is not an array."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def to_epoch_ms(value: Any) -> float | None:
    """Convert a timestamp to epoch milliseconds.

    Accepts epoch numbers (taken as milliseconds, as the backend emits them),
    numeric strings, ISO-8601 strings and datetimes. Anything else is ``None``.
    """
    if isinstance(value, datetime):
        moment = value if value.tzinfo is not None else value.replace(tzinfo=UTC)
        return moment.timestamp() * 1000.0

    numeric = safe_float(value)
    if numeric is not None:
        return numeric

    if not isinstance(value, str) or is_blank(value):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.timestamp() * 1000.0
